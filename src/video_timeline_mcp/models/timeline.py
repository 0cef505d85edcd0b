"""Result models produced by the timeline core."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..types import PlaybackPhase
from .spec import AudioSegment, VideoSpec


class IssueKind(str, Enum):
    """Spec validation failure kinds, in rule precedence order."""

    SCHEMA_INVALID = "SchemaInvalid"
    DURATION_OUT_OF_RANGE = "DurationOutOfRange"
    NO_SCENES = "NoScenes"
    INVALID_SCENE_BOUNDS = "InvalidSceneBounds"
    SCENE_OVERLAP = "SceneOverlap"
    DURATION_MISMATCH = "DurationMismatch"
    INVALID_EVENT_TIME = "InvalidEventTime"
    INVALID_EVENT_DURATION = "InvalidEventDuration"


class ValidationIssue(BaseModel):
    """One structural problem, located precisely enough to fix."""

    kind: IssueKind
    path: str = Field(description="Dotted path to the offending field, e.g. scenes[2].end")
    message: str
    scene_index: int | None = None
    other_scene_index: int | None = None


class ValidationReport(BaseModel):
    """Outcome of validating a spec."""

    valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    spec: VideoSpec | None = Field(default=None, description="Parsed spec when the payload had a valid shape")

    @property
    def kinds(self) -> list[IssueKind]:
        return [i.kind for i in self.issues]


class SynthesisResult(BaseModel):
    """What a speech synthesizer hands back for one chunk."""

    audio_path: str
    duration_seconds: float = Field(ge=0.0)


class SynthesisFailure(BaseModel):
    chunk_id: str
    cause: str


class NarrationResult(BaseModel):
    """Audio segment map, or the failure that aborted it. Never both."""

    segments: dict[str, AudioSegment] = Field(default_factory=dict)
    failure: SynthesisFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def total_duration(self) -> float:
        return max((s.end for s in self.segments.values()), default=0.0)


class SyncReport(BaseModel):
    """Advisory diagnostics; ``valid`` is True iff ``errors`` is empty."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class ActiveEvent(BaseModel):
    index: int = Field(description="Position of the event in scene.events")
    action: str
    channel: str
    progress: float = Field(ge=0.0, le=1.0)


class PlaybackState(BaseModel):
    """Render state of a scene at one instant."""

    scene_time: float
    phase: PlaybackPhase
    active: list[ActiveEvent] = Field(default_factory=list)
    objects: dict[str, dict[str, Any]] = Field(default_factory=dict)


class SubtitleCue(BaseModel):
    id: str
    start: float
    end: float
    text: str


class EditResult(BaseModel):
    """An accepted edit carries the new spec; a rejected one only the report."""

    spec: VideoSpec | None = None
    report: ValidationReport

    @property
    def accepted(self) -> bool:
        return self.spec is not None
