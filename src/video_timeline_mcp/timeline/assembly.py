"""Export-time artifacts derived from a validated spec.

Subtitles, transcript and cues manifest are pure functions of the spec;
``write_export_bundle`` is the only function here that touches disk.

Subtitle timing has two possible sources: an even split of each scene
among its chunks, or the synthesized audio segment map. ``timing="auto"``
(the default for exports) uses the audio map when it covers every chunk,
so subtitles follow the narration actually heard.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path

from ..models.spec import VideoSpec
from ..models.timeline import SubtitleCue
from ..types import SubtitleTiming
from .narration import chunk_id

logger = logging.getLogger(__name__)


def format_vtt_time(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS.mmm`` (truncated to the millisecond)."""
    total_ms = max(0, math.floor(round(seconds * 1000, 6)))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{ms:03d}"


def has_full_audio(spec: VideoSpec) -> bool:
    if not spec.audio_segments:
        return False
    return all(
        chunk_id(i, j) in spec.audio_segments
        for i, scene in enumerate(spec.scenes)
        for j in range(len(scene.narration))
    )


def subtitle_cues(spec: VideoSpec, *, timing: SubtitleTiming = "even") -> list[SubtitleCue]:
    """Build one cue per narration chunk, id ``{scene+1}.{chunk+1}``.

    Args:
        spec: A structurally valid spec.
        timing: ``even`` splits each scene evenly among its chunks;
            ``audio`` uses the audio segment map; ``auto`` picks ``audio``
            when every chunk has a segment, else ``even``.

    Raises:
        ValueError: ``timing="audio"`` and a chunk has no audio segment.
    """
    use_audio = timing == "audio" or (timing == "auto" and has_full_audio(spec))
    if timing == "audio" and not has_full_audio(spec):
        raise ValueError("Audio timing requested but the spec has no complete audio segment map")

    cues: list[SubtitleCue] = []
    for i, scene in enumerate(spec.scenes):
        count = len(scene.narration)
        if not count:
            continue
        step = (scene.end - scene.start) / count
        for j, text in enumerate(scene.narration):
            if use_audio:
                seg = spec.audio_segments[chunk_id(i, j)]
                start, end = seg.start, seg.end
            else:
                start = scene.start + j * step
                end = start + step
            cues.append(SubtitleCue(id=f"{i + 1}.{j + 1}", start=start, end=end, text=text))
    return cues


def render_webvtt(cues: list[SubtitleCue]) -> str:
    """Serialize cues as a WebVTT document."""
    blocks = ["WEBVTT\n"]
    for cue in cues:
        blocks.append(
            f"{cue.id}\n{format_vtt_time(cue.start)} --> {format_vtt_time(cue.end)}\n{cue.text}\n"
        )
    return "\n".join(blocks) + "\n"


def build_transcript(spec: VideoSpec, *, generated_at: datetime | None = None) -> str:
    """Plain-text transcript: a header, then one block per scene."""
    stamp = (generated_at or datetime.now(timezone.utc)).isoformat()
    parts = [f"Video Transcript\nGenerated: {stamp}\n"]
    for scene in spec.scenes:
        parts.append(
            f"[{scene.type.upper()}] ({scene.start:g}s - {scene.end:g}s)\n"
            f"{' '.join(scene.narration)}\n"
        )
    return "\n".join(parts)


def build_cues_manifest(spec: VideoSpec) -> dict:
    """Structured per-scene timing for the muxing step."""
    cues = []
    for i, scene in enumerate(spec.scenes):
        cues.append({
            "id": f"scene_{i}",
            "type": scene.type,
            "start": scene.start,
            "end": scene.end,
            "narration": list(scene.narration),
            "events": [
                {
                    "time": event.t,
                    "action": event.action,
                    "duration": event.effective_duration,
                    "params": dict(event.params or {}),
                }
                for event in scene.events
            ],
        })
    return {"cues": cues, "metadata": {"duration": spec.duration_target}}


def render_cues_json(spec: VideoSpec) -> str:
    return json.dumps(build_cues_manifest(spec), indent=2)


def write_export_bundle(
    spec: VideoSpec,
    out_dir: Path,
    *,
    timing: SubtitleTiming = "auto",
    generated_at: datetime | None = None,
) -> dict[str, str]:
    """Write subtitles.vtt, transcript.txt and cues.json into *out_dir*.

    Returns:
        Mapping of artifact name to written path.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    artifacts = {
        "subtitles": out_dir / "subtitles.vtt",
        "transcript": out_dir / "transcript.txt",
        "cues": out_dir / "cues.json",
    }
    artifacts["subtitles"].write_text(render_webvtt(subtitle_cues(spec, timing=timing)), encoding="utf-8")
    artifacts["transcript"].write_text(build_transcript(spec, generated_at=generated_at), encoding="utf-8")
    artifacts["cues"].write_text(render_cues_json(spec), encoding="utf-8")
    logger.info("Wrote export bundle to %s", out_dir)
    return {name: str(path) for name, path in artifacts.items()}
