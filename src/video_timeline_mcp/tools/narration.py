"""Narration tools — synthesize the audio timeline and check its sync."""

from __future__ import annotations

import logging
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import get_config
from ..errors import SynthesisError, make_tool_error
from ..models.spec import AudioSegment
from ..models.timeline import SynthesisResult
from ..persistence import get_project_db
from ..synthesis import default_synthesizer
from ..timeline.narration import compute_segment_map, flatten_narration, resolve_narration
from ..timeline.sync import check_scene_fit, check_sync
from ..types import ProjectName, SpecParam, VoiceName, coerce_json_param
from ._spec_param import load_spec

logger = logging.getLogger(__name__)

narration_server = FastMCP("narration")


def _segments_dict(segments: dict) -> dict:
    return {k: v.model_dump() for k, v in segments.items()}


@narration_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
async def narration_synthesize(
    spec: SpecParam,
    voice: VoiceName | None = None,
    speed: Annotated[float | None, Field(gt=0.25, le=4.0, description="Speaking rate multiplier")] = None,
    concurrency: Annotated[int | None, Field(ge=1, le=16, description="Parallel TTS requests")] = None,
    project: Annotated[ProjectName | None, Field(
        description="Saved project to attach the resulting audio map to",
    )] = None,
) -> dict:
    """Synthesize every narration chunk and build the audio segment map.

    Chunks are placed back to back from t=0 with a fixed pause between
    them. If any chunk fails, no partial map is returned. Repeat text is
    served from the synthesis cache.

    Args:
        spec: Video spec in the persisted shape.
        voice: TTS voice (defaults to the spec's style voice).
        speed: Speaking rate (defaults to TIMELINE_SPEECH_SPEED).
        concurrency: Parallel requests (defaults to TIMELINE_SYNTH_CONCURRENCY).
        project: Optional saved project whose audio map is replaced.

    Returns:
        Dict with audioSegments, total_duration, sync and scene_fit
        diagnostics, and the spec with its audio map attached.
    """
    try:
        current = load_spec(spec)
    except Exception as exc:
        return make_tool_error(exc)

    cfg = get_config()
    use_voice = voice or current.style.voice or cfg.default_voice

    def _progress(done: int, total: int) -> None:
        logger.debug("Synthesized %d/%d chunk(s)", done, total)

    try:
        result = await resolve_narration(
            current.scenes,
            default_synthesizer(),
            voice=use_voice,
            speed=speed or cfg.speech_speed,
            pause_padding=cfg.pause_padding,
            concurrency=concurrency or cfg.synthesis_concurrency,
            on_progress=_progress,
        )
        if not result.ok:
            raise SynthesisError(
                f"Synthesis failed for {result.failure.chunk_id}: {result.failure.cause}"
            )

        updated = current.with_audio_segments(result.segments)
        if project:
            get_project_db().save_audio_segments(project, result.segments)
    except Exception as exc:
        return make_tool_error(exc)

    sync = check_sync(result.segments, gap_tolerance=cfg.gap_tolerance)
    fit = check_scene_fit(updated)
    return {
        "voice": use_voice,
        "audioSegments": _segments_dict(result.segments),
        "total_duration": round(result.total_duration, 3),
        "sync": sync.model_dump(),
        "scene_fit": fit.model_dump(),
        "spec": updated.to_persisted(),
    }


@narration_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def narration_check_sync(
    segments: Annotated[dict | str, Field(description="Audio segment map {chunk_id: {path, start, end}}")],
    gap_tolerance: Annotated[float | None, Field(gt=0, description="Largest acceptable gap in seconds")] = None,
    spec: Annotated[dict | str | None, Field(
        description="Optional spec; when given, also checks narration against scene bounds",
    )] = None,
) -> dict:
    """Report overlaps and large gaps between adjacent audio segments.

    Advisory only: problems are listed, never raised.

    Args:
        segments: Audio segment map.
        gap_tolerance: Gap threshold (defaults to TIMELINE_GAP_TOLERANCE).
        spec: Optional spec for the scene-fit check.

    Returns:
        Dict with valid and errors, plus scene_fit when spec is given.
    """
    try:
        seg_map = coerce_json_param(segments, dict)
        if not isinstance(seg_map, dict):
            raise ValueError("segments must be a JSON object keyed by chunk id")
        tolerance = gap_tolerance or get_config().gap_tolerance
        out = check_sync(seg_map, gap_tolerance=tolerance).model_dump()
        if spec is not None:
            parsed = {k: AudioSegment.model_validate(v) for k, v in seg_map.items()}
            out["scene_fit"] = check_scene_fit(load_spec(spec), parsed).model_dump()
        return out
    except Exception as exc:
        return make_tool_error(exc)


@narration_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def narration_segment_map(
    spec: SpecParam,
    durations: Annotated[list[float] | str, Field(
        description="Audio length in seconds of each narration chunk, in playback order",
    )],
    pause_padding: Annotated[float | None, Field(gt=0, description="Pause between chunks")] = None,
) -> dict:
    """Lay out an audio segment map from already known chunk durations.

    Useful to plan timing or to re-time audio rendered elsewhere without
    calling the TTS service.

    Returns:
        Dict with audioSegments, total_duration, and sync diagnostics.
    """
    try:
        current = load_spec(spec)
        values = coerce_json_param(durations, list)
        if not isinstance(values, list):
            raise ValueError("durations must be a JSON list of numbers")
        chunks = flatten_narration(current.scenes)
        results = [SynthesisResult(audio_path="", duration_seconds=float(d)) for d in values]
        segments = compute_segment_map(
            chunks, results, pause_padding=pause_padding or get_config().pause_padding,
        )
    except Exception as exc:
        return make_tool_error(exc)
    return {
        "audioSegments": _segments_dict(segments),
        "total_duration": round(max((s.end for s in segments.values()), default=0.0), 3),
        "sync": check_sync(segments, gap_tolerance=get_config().gap_tolerance).model_dump(),
    }
