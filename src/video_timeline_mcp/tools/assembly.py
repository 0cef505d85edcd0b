"""Assembly tools — subtitles, transcript, cues manifest, and export bundle."""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import get_config
from ..errors import make_tool_error
from ..timeline.assembly import (
    build_cues_manifest,
    build_transcript,
    has_full_audio,
    render_webvtt,
    subtitle_cues,
    write_export_bundle,
)
from ..types import SpecParam, SubtitleTiming
from ._spec_param import load_spec

logger = logging.getLogger(__name__)

assembly_server = FastMCP("assembly")


def sanitize_slug(title: str) -> str:
    """Derive a filesystem-safe slug (max 50 chars) from a title.

    Raises:
        ValueError: If the title cannot produce a valid slug.
    """
    slug = re.sub(r"[^a-z0-9-]", "", title.lower().replace(" ", "-"))
    slug = re.sub(r"-+", "-", slug).strip("-")[:50]
    if not slug:
        raise ValueError(f"Cannot derive safe slug from title: {title!r}")
    return slug


def _resolve_output_dir(slug: str, base: Path | None = None) -> Path:
    """Create a fresh ``<base>/<slug>-<suffix>`` directory.

    The random suffix keeps repeated exports of one spec side by side.
    """
    root = base or Path(get_config().export_dir)
    target = root / f"{slug}-{uuid.uuid4().hex[:8]}"
    target.mkdir(parents=True, exist_ok=False)
    return target


@assembly_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def assembly_subtitles(
    spec: SpecParam,
    timing: Annotated[SubtitleTiming, Field(
        description='"even" splits scenes evenly, "audio" follows the audio map, "auto" picks audio when complete',
    )] = "auto",
) -> dict:
    """Render WebVTT subtitles, one cue per narration chunk.

    Args:
        spec: Video spec in the persisted shape.
        timing: Cue timing source.

    Returns:
        Dict with vtt (document text), cues, and timing_source.
    """
    try:
        current = load_spec(spec)
        cues = subtitle_cues(current, timing=timing)
        source = timing
        if timing == "auto":
            source = "audio" if has_full_audio(current) else "even"
        return {
            "vtt": render_webvtt(cues),
            "cues": [c.model_dump() for c in cues],
            "timing_source": source,
        }
    except Exception as exc:
        return make_tool_error(exc)


@assembly_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def assembly_transcript(spec: SpecParam) -> dict:
    """Plain-text transcript with one block per scene.

    Returns:
        Dict with transcript text and scene_count.
    """
    try:
        current = load_spec(spec)
        return {"transcript": build_transcript(current), "scene_count": len(current.scenes)}
    except Exception as exc:
        return make_tool_error(exc)


@assembly_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def assembly_cues(spec: SpecParam) -> dict:
    """Cues manifest: per-scene narration and events with absolute times.

    Returns:
        Dict with cues and metadata.duration.
    """
    try:
        return build_cues_manifest(load_spec(spec))
    except Exception as exc:
        return make_tool_error(exc)


@assembly_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    )
)
async def assembly_export(
    spec: SpecParam,
    title: Annotated[str, Field(description="Used to name the export directory")] = "video",
    timing: SubtitleTiming = "auto",
    output_dir: Annotated[str | None, Field(
        description="Base directory (defaults to TIMELINE_EXPORT_DIR)",
    )] = None,
) -> dict:
    """Write subtitles.vtt, transcript.txt and cues.json to a new directory.

    Args:
        spec: Video spec in the persisted shape.
        title: Export name; slugified for the directory.
        timing: Subtitle timing source.
        output_dir: Base directory for the export.

    Returns:
        Dict with output_dir and artifacts (name -> path).
    """
    try:
        current = load_spec(spec)
        try:
            slug = sanitize_slug(title)
        except ValueError:
            logger.info("Title %r has no usable characters, exporting as 'video'", title)
            slug = "video"
        target = _resolve_output_dir(slug, Path(output_dir).expanduser() if output_dir else None)
        artifacts = write_export_bundle(current, target, timing=timing)
    except Exception as exc:
        return make_tool_error(exc)
    return {"output_dir": str(target), "artifacts": artifacts}
