"""Shared type aliases, time newtypes, and helpers for tool parameters."""

from __future__ import annotations

import json
from typing import Annotated, Literal, NewType

from pydantic import Field

# ── Timeline seconds ─────────────────────────────────────────────────────────
#
# Event ``t`` values are relative to their scene's start; scene bounds and
# audio segments live on the absolute video timeline. Keep the two apart.

SceneRelativeSeconds = NewType("SceneRelativeSeconds", float)
AbsoluteSeconds = NewType("AbsoluteSeconds", float)


def to_scene_time(scene_start: float, global_time: float) -> SceneRelativeSeconds:
    """Convert an absolute timeline position into scene-relative seconds."""
    return SceneRelativeSeconds(float(global_time) - float(scene_start))


def to_absolute_time(scene_start: float, scene_time: float) -> AbsoluteSeconds:
    """Convert a scene-relative offset back onto the absolute timeline."""
    return AbsoluteSeconds(float(scene_start) + float(scene_time))


def coerce_json_param(value: str | dict | list | None, expected_type: type) -> dict | list | None:
    """Parse MCP JSON-RPC string params back to dict/list.

    MCP JSON-RPC transport may serialize dict/list params as JSON strings.
    Pydantic v2 rejects these — this helper coerces them back.

    Args:
        value: The parameter value (possibly a JSON string).
        expected_type: Expected Python type (``dict`` or ``list``).

    Returns:
        Parsed value if coercion succeeded, original value otherwise.
    """
    if not isinstance(value, str):
        return value
    try:
        parsed = json.loads(value)
        if isinstance(parsed, expected_type):
            return parsed
    except (json.JSONDecodeError, TypeError):
        pass
    return value

# ── Literal enums ────────────────────────────────────────────────────────────

SubtitleTiming = Literal["even", "audio", "auto"]
EditOperation = Literal[
    "add_scene", "remove_scene", "move_scene",
    "edit_narration", "add_event", "remove_event",
]
CacheAction = Literal["stats", "list", "clear"]
PlaybackPhase = Literal["before_start", "active", "holding", "rest"]

# ── Annotated aliases ────────────────────────────────────────────────────────

SpecParam = Annotated[
    dict | str,
    Field(description="Video spec object (or its JSON string) in the persisted shape"),
]
SceneIndex = Annotated[int, Field(ge=0, description="Zero-based scene index")]
ProjectName = Annotated[str, Field(
    min_length=1,
    max_length=120,
    pattern=r"^[\w .-]+$",
    description="Project name (letters, digits, spaces, dots, hyphens, underscores)",
)]
PromptParam = Annotated[str, Field(
    min_length=10, max_length=4000, description="Text prompt describing the video content",
)]
VoiceName = Annotated[str, Field(min_length=1, description="TTS voice identifier")]
