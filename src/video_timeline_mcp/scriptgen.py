"""Script generation — prompt to validated video spec via Gemini."""

from __future__ import annotations

import json
import logging

from .client import GeminiClient
from .errors import SpecValidationError
from .models.spec import VideoSpec
from .prompts.script import SCRIPT_SYSTEM, SCRIPT_USER
from .timeline.actions import default_registry
from .timeline.validator import MAX_DURATION_TARGET, MIN_DURATION_TARGET, validate_spec

logger = logging.getLogger(__name__)

DEFAULT_SEED = 42


def build_user_prompt(
    prompt: str,
    *,
    learning_objectives: list[str] | None = None,
    examples: list[str] | None = None,
) -> str:
    extras = ""
    if learning_objectives:
        extras += "\n\nLearning objectives:\n" + "\n".join(f"- {o}" for o in learning_objectives)
    if examples:
        extras += "\n\nReal-world examples to include:\n" + "\n".join(f"- {e}" for e in examples)
    return SCRIPT_USER.format(prompt=prompt, extras=extras)


def apply_style_override(payload: dict, style_override: dict | None) -> dict:
    """Shallow-merge *style_override* into the payload's style block."""
    if not style_override:
        return payload
    merged = dict(payload)
    merged["style"] = {**(payload.get("style") or {}), **style_override}
    return merged


async def generate_spec(
    prompt: str,
    *,
    learning_objectives: list[str] | None = None,
    examples: list[str] | None = None,
    style_override: dict | None = None,
    seed: int = DEFAULT_SEED,
) -> VideoSpec:
    """Draft a video spec for *prompt* and gate it through the validator.

    Raises:
        SpecValidationError: The model's payload broke a spec invariant.
        ValueError: The model did not return a JSON object.
    """
    system = SCRIPT_SYSTEM.format(
        min_duration=int(MIN_DURATION_TARGET),
        max_duration=int(MAX_DURATION_TARGET),
        actions=", ".join(default_registry.names()),
    )
    raw = await GeminiClient.generate_json(
        build_user_prompt(prompt, learning_objectives=learning_objectives, examples=examples),
        system_instruction=system,
        seed=seed,
    )
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Script model returned non-JSON: %r", raw[:200])
        raise ValueError(f"Invalid JSON from script model: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid JSON from script model: expected an object, got {type(payload).__name__}")

    payload = apply_style_override(payload, style_override)
    report = validate_spec(payload)
    if not report.valid:
        raise SpecValidationError(report.issues)
    logger.info(
        "Generated spec: %d scene(s), target %.0fs", len(report.spec.scenes), report.spec.duration_target,
    )
    return report.spec
