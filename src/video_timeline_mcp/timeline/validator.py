"""Structural validation of video specs.

Rules run in a fixed precedence:

1. duration target inside [80, 180]
2. at least one scene
3. every scene ends after it starts
4. scenes, sorted by start, do not overlap
5. the last scene ends within ``duration_target + 5``
6. event offsets are non-negative and explicit durations positive

Every comparison is written so that NaN and infinite values fail it.

Interactive callers collect every issue; pipeline gates pass
``fail_fast=True`` and stop at the first.
"""

from __future__ import annotations

import logging
import math

from pydantic import ValidationError

from ..models.spec import VideoSpec
from ..models.timeline import IssueKind, ValidationIssue, ValidationReport

logger = logging.getLogger(__name__)

MIN_DURATION_TARGET = 80.0
MAX_DURATION_TARGET = 180.0
DURATION_BUFFER = 5.0


class _StopValidation(Exception):
    pass


class _Collector:
    def __init__(self, fail_fast: bool) -> None:
        self.fail_fast = fail_fast
        self.issues: list[ValidationIssue] = []

    def add(self, kind: IssueKind, path: str, message: str, **extra: int) -> None:
        self.issues.append(ValidationIssue(kind=kind, path=path, message=message, **extra))
        if self.fail_fast:
            raise _StopValidation


def loc_to_path(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "$"


def parse_spec(payload: dict) -> tuple[VideoSpec | None, list[ValidationIssue]]:
    """Parse a raw payload, turning pydantic errors into SchemaInvalid issues."""
    try:
        return VideoSpec.model_validate(payload), []
    except ValidationError as exc:
        issues = [
            ValidationIssue(
                kind=IssueKind.SCHEMA_INVALID,
                path=loc_to_path(err["loc"]),
                message=err["msg"],
            )
            for err in exc.errors()
        ]
        return None, issues


def _check_rules(spec: VideoSpec, out: _Collector) -> None:
    target = spec.duration_target
    if not MIN_DURATION_TARGET <= target <= MAX_DURATION_TARGET:
        out.add(
            IssueKind.DURATION_OUT_OF_RANGE,
            "durationTarget",
            f"Duration target {target:g}s is outside "
            f"[{MIN_DURATION_TARGET:g}, {MAX_DURATION_TARGET:g}]",
        )

    if not spec.scenes:
        out.add(IssueKind.NO_SCENES, "scenes", "Spec has no scenes")
        return

    for i, scene in enumerate(spec.scenes):
        if not (math.isfinite(scene.start) and math.isfinite(scene.end) and scene.end > scene.start):
            out.add(
                IssueKind.INVALID_SCENE_BOUNDS,
                f"scenes[{i}].end",
                f"Scene {i} ends at {scene.end:g}s, not after its start {scene.start:g}s",
                scene_index=i,
            )

    order = sorted(range(len(spec.scenes)), key=lambda i: spec.scenes[i].start)
    for a, b in zip(order, order[1:]):
        first, second = spec.scenes[a], spec.scenes[b]
        if first.end > second.start:
            out.add(
                IssueKind.SCENE_OVERLAP,
                f"scenes[{b}].start",
                f"Scene {a} ({first.start:g}-{first.end:g}s) overlaps scene {b} "
                f"({second.start:g}-{second.end:g}s) by {first.end - second.start:g}s",
                scene_index=a,
                other_scene_index=b,
            )

    last_index = order[-1]
    last = spec.scenes[last_index]
    limit = target + DURATION_BUFFER
    if not last.end <= limit:
        out.add(
            IssueKind.DURATION_MISMATCH,
            f"scenes[{last_index}].end",
            f"Last scene ends at {last.end:g}s, past the target {target:g}s "
            f"plus {DURATION_BUFFER:g}s buffer",
            scene_index=last_index,
        )

    for i, scene in enumerate(spec.scenes):
        for j, event in enumerate(scene.events):
            if not (math.isfinite(event.t) and event.t >= 0):
                out.add(
                    IssueKind.INVALID_EVENT_TIME,
                    f"scenes[{i}].events[{j}].t",
                    f"Event '{event.action}' starts at {event.t:g}s; offsets are "
                    f"relative to the scene start and must be >= 0",
                    scene_index=i,
                )
            if event.duration is not None and not (math.isfinite(event.duration) and event.duration > 0):
                out.add(
                    IssueKind.INVALID_EVENT_DURATION,
                    f"scenes[{i}].events[{j}].duration",
                    f"Event '{event.action}' has invalid duration {event.duration:g}s",
                    scene_index=i,
                )


def validate_spec(spec: VideoSpec | dict, *, fail_fast: bool = False) -> ValidationReport:
    """Validate a spec or raw spec payload.

    Args:
        spec: A ``VideoSpec`` or a persisted-shape dict (e.g. LLM output).
        fail_fast: Stop at the first issue instead of collecting all.

    Returns:
        ValidationReport; ``report.spec`` holds the parsed model whenever
        the payload had a valid shape, even if temporal rules failed.
    """
    if isinstance(spec, dict):
        parsed, schema_issues = parse_spec(spec)
        if parsed is None:
            if fail_fast:
                schema_issues = schema_issues[:1]
            return ValidationReport(valid=False, issues=schema_issues)
        spec = parsed

    out = _Collector(fail_fast)
    try:
        _check_rules(spec, out)
    except _StopValidation:
        pass

    if out.issues:
        logger.debug("Spec rejected with %d issue(s): %s", len(out.issues), [i.kind.value for i in out.issues])
    return ValidationReport(valid=not out.issues, issues=out.issues, spec=spec)
