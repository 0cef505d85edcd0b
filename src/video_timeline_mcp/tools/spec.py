"""Spec tools — validate, generate from a prompt, and edit video specs."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error
from ..scriptgen import DEFAULT_SEED, generate_spec
from ..timeline import editing
from ..timeline.validator import validate_spec
from ..types import EditOperation, PromptParam, SceneIndex, SpecParam, coerce_json_param
from ._spec_param import parse_payload, report_dict, spec_payload

spec_server = FastMCP("spec")


@spec_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def spec_validate(
    spec: SpecParam,
    fail_fast: Annotated[bool, Field(description="Stop at the first violation")] = False,
) -> dict:
    """Check a video spec against the timeline rules.

    Reports every violation (or only the first with ``fail_fast``), each
    with its kind and the path of the offending field.

    Args:
        spec: Video spec in the persisted shape.
        fail_fast: Return after the first violation.

    Returns:
        Dict with valid, issues, and scene_count.
    """
    try:
        report = validate_spec(spec_payload(spec), fail_fast=fail_fast)
        out = report_dict(report)
        out["scene_count"] = len(report.spec.scenes) if report.spec else 0
        return out
    except Exception as exc:
        return make_tool_error(exc)


@spec_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
async def spec_generate(
    prompt: PromptParam,
    learning_objectives: Annotated[list[str] | str | None, Field(
        description="Learning objectives the video must cover",
    )] = None,
    examples: Annotated[list[str] | str | None, Field(
        description="Real-world examples to weave into the script",
    )] = None,
    style_override: Annotated[dict | str | None, Field(
        description="Style fields merged over the generated style block",
    )] = None,
    seed: Annotated[int, Field(description="Sampling seed for reproducible drafts")] = DEFAULT_SEED,
) -> dict:
    """Draft a new video spec from a text prompt with Gemini.

    The draft is validated before it is returned; an invalid draft comes
    back as a SPEC_INVALID error listing the violations.

    Args:
        prompt: What the video should explain.
        learning_objectives: Optional objectives list.
        examples: Optional real-world examples.
        style_override: Optional style fields (voice, colors, ...).
        seed: Sampling seed.

    Returns:
        Dict with spec (persisted shape), scene_count, and duration_target.
    """
    try:
        spec = await generate_spec(
            prompt,
            learning_objectives=coerce_json_param(learning_objectives, list),
            examples=coerce_json_param(examples, list),
            style_override=coerce_json_param(style_override, dict),
            seed=seed,
        )
    except Exception as exc:
        return make_tool_error(exc)
    return {
        "spec": spec.to_persisted(),
        "scene_count": len(spec.scenes),
        "duration_target": spec.duration_target,
    }


@spec_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def spec_edit(
    spec: SpecParam,
    operation: EditOperation,
    scene_index: SceneIndex | None = None,
    to_index: Annotated[int | None, Field(
        ge=0, description="Destination index for move_scene, insert position for add_scene",
    )] = None,
    chunk_index: Annotated[int | None, Field(ge=0, description="Narration chunk index")] = None,
    event_index: Annotated[int | None, Field(ge=0, description="Event index for remove_event")] = None,
    text: Annotated[str | None, Field(description="New narration text for edit_narration")] = None,
    scene: Annotated[dict | str | None, Field(description="Scene object for add_scene")] = None,
    event: Annotated[dict | str | None, Field(description="Event object for add_event")] = None,
) -> dict:
    """Apply one edit to a spec and re-validate the result.

    The input spec is never modified and need not be valid itself, so
    an edit can repair a broken timeline. A rejected edit returns
    ``accepted: false`` with the violations; an accepted one returns the
    edited spec. Narration and scene-list edits drop the audio map.

    Args:
        spec: Video spec in the persisted shape.
        operation: add_scene, remove_scene, move_scene, edit_narration,
            add_event or remove_event.
        scene_index: Target scene (all operations except add_scene).
        to_index: Destination for move_scene, or insert position for add_scene.
        chunk_index: Narration chunk for edit_narration.
        event_index: Event for remove_event.
        text: Narration text for edit_narration.
        scene: Scene object for add_scene.
        event: Event object for add_event.

    Returns:
        Dict with accepted, issues, and spec when accepted.
    """
    try:
        current = parse_payload(spec)

        def need(value, name: str):
            if value is None:
                raise ValueError(f"{operation} requires {name}")
            return value

        if operation == "add_scene":
            scene_obj = coerce_json_param(need(scene, "scene"), dict)
            result = editing.add_scene(current, scene_obj, index=to_index)
        elif operation == "remove_scene":
            result = editing.remove_scene(current, need(scene_index, "scene_index"))
        elif operation == "move_scene":
            result = editing.move_scene(current, need(scene_index, "scene_index"), need(to_index, "to_index"))
        elif operation == "edit_narration":
            result = editing.edit_narration(
                current,
                need(scene_index, "scene_index"),
                need(chunk_index, "chunk_index"),
                need(text, "text"),
            )
        elif operation == "add_event":
            event_obj = coerce_json_param(need(event, "event"), dict)
            result = editing.add_event(current, need(scene_index, "scene_index"), event_obj)
        elif operation == "remove_event":
            result = editing.remove_event(current, need(scene_index, "scene_index"), need(event_index, "event_index"))
        else:
            raise ValueError(f"Unknown edit operation: {operation}")
    except Exception as exc:
        return make_tool_error(exc)

    out = {"operation": operation, "accepted": result.accepted, **report_dict(result.report)}
    if result.accepted:
        out["spec"] = result.spec.to_persisted()
    return out
