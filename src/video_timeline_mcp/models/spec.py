"""Temporal scene model — the persisted video spec.

The models only enforce shape (types, required fields). Temporal rules
(duration bounds, scene ordering, event offsets) are checked by
``timeline.validator`` so that every violation can be reported at once
instead of failing on the first one pydantic meets.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
)

DEFAULT_EVENT_DURATION = 1.0
DEFAULT_TRANSITION = 0.3
SCENE_TYPES = ("intro", "skill1", "skill2", "summary")


class _PersistedModel(BaseModel):
    """Serializes without optional fields that hold no value.

    Only declared fields defaulting to ``None`` are left out; extra keys
    are written as given, ``null`` included.
    """

    @model_serializer(mode="wrap")
    def _omit_empty_optionals(self, handler: SerializerFunctionWrapHandler, info: SerializationInfo):
        data = handler(self)
        for name, field in type(self).model_fields.items():
            if field.default is not None:
                continue
            key = field.alias if info.by_alias and field.alias else name
            if key in data and data[key] is None:
                del data[key]
        return data


class VisualEvent(_PersistedModel):
    """A renderer instruction anchored to its scene's start.

    ``t`` is scene-relative. Unknown keys (``text``, ``latex``, ``color``,
    ``position``, ``material``...) are kept as extras and passed through.
    """

    model_config = ConfigDict(extra="allow")

    t: float = Field(description="Offset in seconds from the scene start")
    action: str = Field(min_length=1, description="Action type, e.g. reveal_text")
    duration: float | None = Field(default=None, description="Active window length in seconds")
    params: dict[str, Any] | None = Field(default=None, description="Action-specific parameters")

    @property
    def effective_duration(self) -> float:
        return DEFAULT_EVENT_DURATION if self.duration is None else self.duration

    @property
    def end_offset(self) -> float:
        """Scene-relative time at which the active window closes."""
        return self.t + self.effective_duration

    @property
    def channel(self) -> str:
        """The object this event drives; events on one channel share state."""
        target = (self.params or {}).get("target")
        if target is None and self.model_extra:
            target = self.model_extra.get("target")
        return str(target) if target is not None else self.action

    def param(self, name: str, default: Any = None) -> Any:
        """Look up *name* in ``params`` first, then in top-level extras."""
        if self.params and name in self.params:
            return self.params[name]
        if self.model_extra and name in self.model_extra:
            return self.model_extra[name]
        return default


class Scene(BaseModel):
    """One contiguous window of the video timeline."""

    type: str = Field(min_length=1, description="Scene category: intro, skill1, skill2, summary, ...")
    start: float = Field(description="Absolute start time in seconds")
    end: float = Field(description="Absolute end time in seconds")
    narration: list[str] = Field(default_factory=list, description="Narration chunks in playback order")
    events: list[VisualEvent] = Field(default_factory=list, description="Visual events")

    @property
    def duration(self) -> float:
        return self.end - self.start


class ColorPalette(_PersistedModel):
    primary: str
    accent: str | None = None
    background: str | None = None


class TypographySizes(BaseModel):
    title: float = 36
    body: float = 16


class Typography(_PersistedModel):
    family: str = "Roboto"
    sizes: TypographySizes | None = None


class StyleConfig(_PersistedModel):
    """Rendering parameters. Carries no timing invariants."""

    voice: str = Field(default="Kore", description="TTS voice name")
    colors: ColorPalette
    typography: Typography | None = None
    transitions: float = Field(default=DEFAULT_TRANSITION, description="Transition length in seconds")


class AudioSegment(BaseModel):
    """A synthesized narration chunk placed on the absolute timeline."""

    path: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


class VideoSpec(_PersistedModel):
    """Root of the temporal scene model.

    Persisted with camelCase keys (``durationTarget``, ``audioSegments``);
    snake_case keys are accepted on input too.
    """

    model_config = ConfigDict(populate_by_name=True)

    duration_target: float = Field(alias="durationTarget", description="Target length in seconds (80-180)")
    scenes: list[Scene] = Field(default_factory=list)
    style: StyleConfig
    audio_segments: dict[str, AudioSegment] | None = Field(
        default=None,
        alias="audioSegments",
        description="Narration segments keyed scene{N}_chunk{M}; absent before synthesis",
    )

    def to_persisted(self) -> dict:
        """Return the JSON-ready persisted shape.

        Empty optional fields (a missing audio map, an event without
        ``duration``) are omitted. Extra keys on events are kept as given,
        ``null`` values included.
        """
        return self.model_dump(mode="json", by_alias=True)

    def to_persisted_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_persisted(), indent=indent)

    @classmethod
    def from_persisted(cls, data: dict) -> VideoSpec:
        return cls.model_validate(data)

    @classmethod
    def from_persisted_json(cls, raw: str) -> VideoSpec:
        return cls.model_validate_json(raw)

    def with_audio_segments(self, segments: dict[str, AudioSegment] | None) -> VideoSpec:
        """Return a copy carrying *segments* as its audio map."""
        copy = self.model_copy(deep=True)
        copy.audio_segments = (
            {k: v.model_copy() for k, v in segments.items()} if segments is not None else None
        )
        return copy
