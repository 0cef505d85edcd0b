"""Infrastructure tools — synthesis cache management and runtime config."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from .. import cache as cache_mod
from ..config import get_config, update_config
from ..errors import make_tool_error
from ..types import CacheAction, VoiceName

infra_server = FastMCP("infra")
_SENSITIVE_CONFIG_FIELDS = {"gemini_api_key"}


def _redacted_config() -> dict:
    """Return runtime config with secret-bearing fields removed."""
    return get_config().model_dump(exclude=_SENSITIVE_CONFIG_FIELDS)


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def infra_cache(
    action: CacheAction = "stats",
    voice: Annotated[str | None, Field(description="Scope clear to entries rendered with this voice")] = None,
) -> dict:
    """Manage the synthesis cache — view stats, list entries, or clear.

    Clearing removes cache records only; rendered audio files stay on disk.

    Args:
        action: "stats", "list", or "clear".
        voice: With "clear", only drop entries for this voice.

    Returns:
        Dict with cache stats, entry list, or removal count.
    """
    if action == "stats":
        return cache_mod.stats()
    if action == "list":
        return {"entries": cache_mod.list_entries()}
    if action == "clear":
        try:
            return {"removed": cache_mod.clear(voice)}
        except Exception as exc:
            return make_tool_error(exc)
    return {"error": f"Unknown action: {action}", "valid_actions": ["stats", "list", "clear"]}


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def infra_config(
    default_voice: VoiceName | None = None,
    speech_speed: Annotated[float | None, Field(gt=0.25, le=4.0, description="Speaking rate")] = None,
    pause_padding: Annotated[float | None, Field(gt=0, description="Pause between narration chunks")] = None,
    gap_tolerance: Annotated[float | None, Field(gt=0, description="Largest gap the sync check accepts")] = None,
    synthesis_concurrency: Annotated[int | None, Field(ge=1, le=16, description="Parallel TTS requests")] = None,
    tts_model: Annotated[str | None, Field(description="Gemini TTS model ID")] = None,
    script_model: Annotated[str | None, Field(description="Gemini model ID for script drafts")] = None,
) -> dict:
    """Show the runtime config, or change timing and synthesis settings.

    Changes take effect immediately for all subsequent tool calls.
    Calling with no arguments only reports the current config.

    Returns:
        Dict with current_config (secrets removed) and changed field names.
    """
    try:
        overrides = {
            "default_voice": default_voice,
            "speech_speed": speech_speed,
            "pause_padding": pause_padding,
            "gap_tolerance": gap_tolerance,
            "synthesis_concurrency": synthesis_concurrency,
            "tts_model": tts_model,
            "script_model": script_model,
        }
        changed = sorted(k for k, v in overrides.items() if v is not None)
        if changed:
            update_config(**overrides)
        return {"current_config": _redacted_config(), "changed": changed}
    except Exception as exc:
        return make_tool_error(exc)
