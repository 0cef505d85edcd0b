"""Playback tool — resolve a scene's render state at a point in time."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error
from ..timeline.playback import resolve_playback, scene_at
from ..types import SceneIndex, SpecParam
from ._spec_param import load_spec

playback_server = FastMCP("playback")


@playback_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def playback_resolve(
    spec: SpecParam,
    time: Annotated[float, Field(description="Absolute position on the video timeline, in seconds")],
    scene_index: SceneIndex | None = None,
) -> dict:
    """Resolve which events are active and each object's state at *time*.

    Objects hold their last animated state after an event finishes;
    before a scene starts everything is at rest. The same inputs always
    give the same output, so frames can be requested in any order.

    Args:
        spec: Video spec in the persisted shape.
        time: Absolute timeline position in seconds.
        scene_index: Scene to resolve; defaults to the scene showing at *time*.

    Returns:
        Dict with scene_index, scene_type, scene_time, phase, active
        events, and per-object state.
    """
    try:
        current = load_spec(spec)
        index = scene_index if scene_index is not None else scene_at(current.scenes, time)
        if not 0 <= index < len(current.scenes):
            raise ValueError(f"Scene index {index} out of range (0-{len(current.scenes) - 1})")
        scene = current.scenes[index]
        state = resolve_playback(scene, time)
    except Exception as exc:
        return make_tool_error(exc)
    return {"scene_index": index, "scene_type": scene.type, **state.model_dump(mode="json")}
