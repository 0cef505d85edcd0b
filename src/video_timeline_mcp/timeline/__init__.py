"""Timeline core — pure functions over the temporal scene model.

Public API:
    validate_spec()       — structural invariants of a spec
    resolve_narration()   — audio segment map from synthesized durations
    check_sync()          — overlap / gap diagnostics for a segment map
    check_scene_fit()     — narration vs scene boundary drift
    resolve_playback()    — render state of a scene at an instant
    subtitle_cues(), build_transcript(), build_cues_manifest() — export artifacts
"""

from .assembly import (
    build_cues_manifest,
    build_transcript,
    format_vtt_time,
    render_webvtt,
    subtitle_cues,
    write_export_bundle,
)
from .narration import PAUSE_PADDING, chunk_id, compute_segment_map, flatten_narration, resolve_narration
from .playback import resolve_playback, scene_at
from .sync import GAP_TOLERANCE, check_scene_fit, check_sync
from .validator import validate_spec

__all__ = [
    "GAP_TOLERANCE",
    "PAUSE_PADDING",
    "build_cues_manifest",
    "build_transcript",
    "check_scene_fit",
    "check_sync",
    "chunk_id",
    "compute_segment_map",
    "flatten_narration",
    "format_vtt_time",
    "render_webvtt",
    "resolve_narration",
    "resolve_playback",
    "scene_at",
    "subtitle_cues",
    "validate_spec",
    "write_export_bundle",
]
