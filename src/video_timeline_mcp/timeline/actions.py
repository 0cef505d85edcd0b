"""Per-action interpolation registry.

An interpolator turns ``(event, progress)`` into a state dict for the
object the event drives. The playback resolver only knows about active
windows and hold semantics; everything action-specific lives here, so a
new action is one ``@registry.register(...)`` away.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from typing import Any

from ..models.spec import VisualEvent

logger = logging.getLogger(__name__)

Interpolator = Callable[[VisualEvent, float], dict[str, Any]]


def _ease_in_out_quad(p: float) -> float:
    return 2 * p * p if p < 0.5 else 1 - ((-2 * p + 2) ** 2) / 2


EASINGS: dict[str, Callable[[float], float]] = {
    "linear": lambda p: p,
    "ease_in": lambda p: p * p,
    "ease_out": lambda p: 1 - (1 - p) * (1 - p),
    "ease_in_out": _ease_in_out_quad,
    "power2.inOut": _ease_in_out_quad,
    "sine": lambda p: 0.5 - math.cos(math.pi * p) / 2,
}


def ease(name: str | None, progress: float) -> float:
    """Apply the named easing curve; unknown names fall back to linear."""
    fn = EASINGS.get(name or "linear")
    if fn is None:
        logger.debug("Unknown easing %r, using linear", name)
        fn = EASINGS["linear"]
    return fn(progress)


def lerp(start: Any, end: Any, progress: float) -> Any:
    """Interpolate numbers or equal-length numeric sequences."""
    if isinstance(start, Sequence) and not isinstance(start, str):
        if not isinstance(end, Sequence) or len(end) != len(start):
            raise ValueError(f"Cannot interpolate {start!r} to {end!r}")
        return [lerp(a, b, progress) for a, b in zip(start, end)]
    return start + (end - start) * progress


class ActionRegistry:
    """Maps action names to interpolators, with a generic fallback."""

    def __init__(self) -> None:
        self._interpolators: dict[str, Interpolator] = {}

    def register(self, *names: str) -> Callable[[Interpolator], Interpolator]:
        def decorator(fn: Interpolator) -> Interpolator:
            for name in names:
                self._interpolators[name] = fn
            return fn
        return decorator

    def get(self, action: str) -> Interpolator:
        return self._interpolators.get(action, _generic)

    def __contains__(self, action: str) -> bool:
        return action in self._interpolators

    def names(self) -> list[str]:
        return sorted(self._interpolators)

    def copy(self) -> ActionRegistry:
        clone = ActionRegistry()
        clone._interpolators = dict(self._interpolators)
        return clone


def _generic(event: VisualEvent, progress: float) -> dict[str, Any]:
    return {"action": event.action, "progress": progress}


default_registry = ActionRegistry()


@default_registry.register("move", "animate_vector_3d")
def _move(event: VisualEvent, progress: float) -> dict[str, Any]:
    start = event.param("from", event.param("position", [0.0, 0.0, 0.0]))
    end = event.param("to", event.param("direction", start))
    if not isinstance(start, Sequence) and isinstance(end, Sequence):
        start = [start] * len(end)
    state = {"position": lerp(start, end, ease(event.param("ease", "linear"), progress))}
    if event.param("color") is not None:
        state["color"] = event.param("color")
    return state


@default_registry.register("animate_puck_3d")
def _puck(event: VisualEvent, progress: float) -> dict[str, Any]:
    start = event.param("from", event.param("position", [0.0, 0.0, 0.0]))
    default_end = [start[0] + 10.0, *start[1:]] if event.param("path") == "straight_line" else start
    end = event.param("to", default_end)
    return {"position": lerp(start, end, ease(event.param("ease", "linear"), progress))}


@default_registry.register("reveal_text", "draw_eqn_3d")
def _reveal(event: VisualEvent, progress: float) -> dict[str, Any]:
    p = ease(event.param("ease", "ease_out"), progress)
    state: dict[str, Any] = {
        "opacity": p,
        "offset_y": lerp(float(event.param("offset", 0.5)), 0.0, p),
    }
    for key in ("text", "latex", "color"):
        if event.param(key) is not None:
            state[key] = event.param(key)
    return state


@default_registry.register("fade")
def _fade(event: VisualEvent, progress: float) -> dict[str, Any]:
    start = float(event.param("from", 0.0))
    end = float(event.param("to", 1.0))
    return {"opacity": lerp(start, end, ease(event.param("ease", "linear"), progress))}


@default_registry.register("load_gltf")
def _load_model(event: VisualEvent, progress: float) -> dict[str, Any]:
    return {
        "model": event.param("model", event.param("url")),
        "visible": progress > 0.0,
        "scale": lerp(0.0, float(event.param("scale", 1.0)), ease("ease_out", progress)),
    }


@default_registry.register("animate_particles")
def _particles(event: VisualEvent, progress: float) -> dict[str, Any]:
    return {"intensity": ease(event.param("ease", "sine"), progress)}
