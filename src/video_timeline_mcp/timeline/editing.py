"""Spec editing operations.

Every edit works on a deep copy and is re-validated before it is
accepted; the input spec is never modified. Edits that change which
narration exists (or its text) drop the audio segment map, since its
timings no longer describe the spec.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from ..models.spec import Scene, VideoSpec, VisualEvent
from ..models.timeline import EditResult, IssueKind, ValidationIssue, ValidationReport
from .validator import loc_to_path, validate_spec

logger = logging.getLogger(__name__)


def _reject(path: str, message: str, kind: IssueKind = IssueKind.SCHEMA_INVALID) -> EditResult:
    issue = ValidationIssue(kind=kind, path=path, message=message)
    return EditResult(spec=None, report=ValidationReport(valid=False, issues=[issue]))


def _reject_schema(prefix: str, exc: ValidationError) -> EditResult:
    issues = [
        ValidationIssue(
            kind=IssueKind.SCHEMA_INVALID,
            path=f"{prefix}.{loc_to_path(err['loc'])}" if err["loc"] else prefix,
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    return EditResult(spec=None, report=ValidationReport(valid=False, issues=issues))


def _commit(candidate: VideoSpec, action: str) -> EditResult:
    report = validate_spec(candidate)
    if not report.valid:
        logger.info("Rejected %s: %s", action, [i.kind.value for i in report.issues])
        return EditResult(spec=None, report=report)
    return EditResult(spec=candidate, report=report)


def _check_scene_index(spec: VideoSpec, index: int, path: str = "scenes") -> EditResult | None:
    if not 0 <= index < len(spec.scenes):
        return _reject(f"{path}[{index}]", f"Scene index {index} out of range (0-{len(spec.scenes) - 1})")
    return None


def add_scene(spec: VideoSpec, scene: Scene | dict, *, index: int | None = None) -> EditResult:
    """Insert *scene* at *index* (default: append)."""
    try:
        new_scene = scene if isinstance(scene, Scene) else Scene.model_validate(scene)
    except ValidationError as exc:
        return _reject_schema("scene", exc)
    candidate = spec.model_copy(deep=True)
    position = len(candidate.scenes) if index is None else index
    if not 0 <= position <= len(candidate.scenes):
        return _reject(f"scenes[{position}]", f"Insert position {position} out of range")
    candidate.scenes.insert(position, new_scene.model_copy(deep=True))
    candidate.audio_segments = None
    return _commit(candidate, "add_scene")


def remove_scene(spec: VideoSpec, index: int) -> EditResult:
    if (bad := _check_scene_index(spec, index)) is not None:
        return bad
    candidate = spec.model_copy(deep=True)
    del candidate.scenes[index]
    candidate.audio_segments = None
    return _commit(candidate, "remove_scene")


def move_scene(spec: VideoSpec, from_index: int, to_index: int) -> EditResult:
    """Reorder scenes and re-pack their times.

    Each scene keeps its length; scenes are laid back to back from the
    earliest original start in their new order.
    """
    for idx, name in ((from_index, "from"), (to_index, "to")):
        if (bad := _check_scene_index(spec, idx, f"scenes({name})")) is not None:
            return bad
    candidate = spec.model_copy(deep=True)
    scene = candidate.scenes.pop(from_index)
    candidate.scenes.insert(to_index, scene)

    cursor = min(s.start for s in spec.scenes)
    for s in candidate.scenes:
        length = s.end - s.start
        s.start, s.end = cursor, cursor + length
        cursor += length
    candidate.audio_segments = None
    return _commit(candidate, "move_scene")


def edit_narration(spec: VideoSpec, scene_index: int, chunk_index: int, text: str) -> EditResult:
    """Replace one narration chunk; ``chunk_index == len`` appends."""
    if (bad := _check_scene_index(spec, scene_index)) is not None:
        return bad
    narration = spec.scenes[scene_index].narration
    path = f"scenes[{scene_index}].narration[{chunk_index}]"
    if not 0 <= chunk_index <= len(narration):
        return _reject(path, f"Chunk index {chunk_index} out of range")
    if not text.strip():
        return _reject(path, "Narration text must not be empty")

    candidate = spec.model_copy(deep=True)
    chunks = candidate.scenes[scene_index].narration
    if chunk_index == len(chunks):
        chunks.append(text)
    else:
        chunks[chunk_index] = text
    candidate.audio_segments = None
    return _commit(candidate, "edit_narration")


def add_event(spec: VideoSpec, scene_index: int, event: VisualEvent | dict) -> EditResult:
    """Append a visual event to a scene. Narration timing is unaffected."""
    if (bad := _check_scene_index(spec, scene_index)) is not None:
        return bad
    try:
        new_event = event if isinstance(event, VisualEvent) else VisualEvent.model_validate(event)
    except ValidationError as exc:
        return _reject_schema("event", exc)
    candidate = spec.model_copy(deep=True)
    candidate.scenes[scene_index].events.append(new_event.model_copy(deep=True))
    return _commit(candidate, "add_event")


def remove_event(spec: VideoSpec, scene_index: int, event_index: int) -> EditResult:
    if (bad := _check_scene_index(spec, scene_index)) is not None:
        return bad
    events = spec.scenes[scene_index].events
    if not 0 <= event_index < len(events):
        return _reject(f"scenes[{scene_index}].events[{event_index}]", f"Event index {event_index} out of range")
    candidate = spec.model_copy(deep=True)
    del candidate.scenes[scene_index].events[event_index]
    return _commit(candidate, "remove_event")
