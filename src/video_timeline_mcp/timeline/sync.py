"""Cross-media sync checks. Advisory only: these never raise."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ..models.spec import AudioSegment, VideoSpec
from ..models.timeline import SyncReport
from .narration import chunk_id

logger = logging.getLogger(__name__)

GAP_TOLERANCE = 2.0
SCENE_FIT_TOLERANCE = 0.3


def _as_segment(value: AudioSegment | Mapping) -> AudioSegment:
    if isinstance(value, AudioSegment):
        return value
    return AudioSegment(path=str(value.get("path", "")), start=float(value["start"]), end=float(value["end"]))


def check_sync(
    segments: Mapping[str, AudioSegment | Mapping],
    *,
    gap_tolerance: float = GAP_TOLERANCE,
) -> SyncReport:
    """Flag overlapping and widely spaced adjacent audio segments.

    Gaps up to ``gap_tolerance`` (which covers the normal pause padding)
    are fine. Segments that cannot be read are reported, not raised.
    """
    errors: list[str] = []
    parsed: list[tuple[str, AudioSegment]] = []
    for key, value in segments.items():
        try:
            parsed.append((key, _as_segment(value)))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            errors.append(f"Unreadable segment {key}: {exc}")

    parsed.sort(key=lambda item: (item[1].start, item[1].end))
    for (id1, seg1), (id2, seg2) in zip(parsed, parsed[1:]):
        gap = seg2.start - seg1.end
        if gap < 0:
            errors.append(f"Overlap detected: {id1} and {id2} ({abs(gap):.3f}s)")
        elif gap > gap_tolerance:
            errors.append(f"Large gap detected: {id1} to {id2} ({gap:.3f}s)")

    if errors:
        logger.warning("Audio sync check found %d issue(s)", len(errors))
    return SyncReport(valid=not errors, errors=errors)


def check_scene_fit(
    spec: VideoSpec,
    segments: Mapping[str, AudioSegment] | None = None,
    *,
    tolerance: float = SCENE_FIT_TOLERANCE,
) -> SyncReport:
    """Compare narration timing against scene boundaries.

    Narration is timed from speech length, scenes from the script, so the
    two can drift apart. Reports scenes whose narration runs past the
    scene end, chunks with no segment, and narration that outlasts the
    whole video, each beyond ``tolerance`` seconds.
    """
    segments = segments if segments is not None else (spec.audio_segments or {})
    errors: list[str] = []

    for i, scene in enumerate(spec.scenes):
        ends: list[float] = []
        for j in range(len(scene.narration)):
            seg = segments.get(chunk_id(i, j))
            if seg is None:
                errors.append(f"Missing audio for {chunk_id(i, j)}")
                continue
            ends.append(seg.end)
        if ends and max(ends) > scene.end + tolerance:
            errors.append(
                f"Scene {i} ({scene.type}) narration ends at {max(ends):.3f}s, "
                f"{max(ends) - scene.end:.3f}s after the scene ends"
            )

    if spec.scenes and segments:
        video_end = max(s.end for s in spec.scenes)
        narration_end = max(s.end for s in segments.values())
        if narration_end > video_end + tolerance:
            errors.append(
                f"Narration runs {narration_end - video_end:.3f}s past the last scene ({video_end:g}s)"
            )

    return SyncReport(valid=not errors, errors=errors)
