"""Playback time resolution — what a scene looks like at a given instant.

``resolve_playback`` is called once per animation frame or scrub event,
in any order, so it is a pure function of ``(scene, global_time)``: no
clock, no memory of earlier calls, no I/O.

Per object (channel), the state is built in layers:

- rest: the channel's earliest event at progress 0
- completed events (window already over) at progress 1, in end order,
  so an object holds its last animated state instead of snapping back
- active events at their current progress

Before the scene starts every channel is at rest. Malformed input is
logged and degraded to rest state; the resolver never raises.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from ..models.spec import DEFAULT_EVENT_DURATION, Scene, VisualEvent
from ..models.timeline import ActiveEvent, PlaybackState
from ..types import SceneRelativeSeconds, to_scene_time
from .actions import ActionRegistry, default_registry

logger = logging.getLogger(__name__)


class _Window:
    __slots__ = ("index", "event", "t", "duration")

    def __init__(self, index: int, event: VisualEvent) -> None:
        self.index = index
        self.event = event
        t = event.t
        if not math.isfinite(t) or t < 0:
            logger.warning(
                "Event %d (%s) has invalid offset %r; clamping to 0", index, event.action, t,
            )
            t = 0.0
        duration = event.effective_duration
        if not math.isfinite(duration) or duration <= 0:
            logger.warning(
                "Event %d (%s) has invalid duration %r; using %gs",
                index, event.action, duration, DEFAULT_EVENT_DURATION,
            )
            duration = DEFAULT_EVENT_DURATION
        self.t = t
        self.duration = duration

    @property
    def end(self) -> float:
        return self.t + self.duration

    def progress(self, scene_time: SceneRelativeSeconds) -> float:
        return min(max((scene_time - self.t) / self.duration, 0.0), 1.0)


def _channels(scene: Scene) -> dict[str, list[_Window]]:
    channels: dict[str, list[_Window]] = {}
    for i, event in enumerate(scene.events):
        channels.setdefault(event.channel, []).append(_Window(i, event))
    for windows in channels.values():
        windows.sort(key=lambda w: (w.t, w.index))
    return channels


def _apply(registry: ActionRegistry, window: _Window, progress: float) -> dict[str, Any]:
    try:
        return dict(registry.get(window.event.action)(window.event, progress))
    except Exception as exc:
        logger.warning(
            "Interpolation failed for event %d (%s) at progress %.3f: %s",
            window.index, window.event.action, progress, exc,
        )
        return {}


def _rest_objects(channels: dict[str, list[_Window]], registry: ActionRegistry) -> dict[str, dict[str, Any]]:
    return {name: _apply(registry, windows[0], 0.0) for name, windows in channels.items()}


def resolve_playback(
    scene: Scene,
    global_time: float,
    *,
    registry: ActionRegistry | None = None,
) -> PlaybackState:
    """Resolve the render state of *scene* at absolute time *global_time*.

    Args:
        scene: The scene being previewed.
        global_time: Position on the absolute video timeline, in seconds.
        registry: Action interpolators; defaults to the built-in registry.

    Returns:
        PlaybackState with the scene-relative time, phase, active events
        and per-channel object state.
    """
    registry = registry or default_registry
    try:
        channels = _channels(scene)
    except Exception as exc:
        logger.warning("Cannot read events of scene %r: %s", scene.type, exc)
        return PlaybackState(scene_time=0.0, phase="rest")

    try:
        scene_time = to_scene_time(scene.start, global_time)
    except (TypeError, ValueError) as exc:
        logger.warning("Invalid playback time %r: %s", global_time, exc)
        return PlaybackState(scene_time=0.0, phase="rest", objects=_rest_objects(channels, registry))
    if not math.isfinite(scene_time):
        logger.warning("Non-finite playback time %r for scene %r", global_time, scene.type)
        return PlaybackState(scene_time=0.0, phase="rest", objects=_rest_objects(channels, registry))

    rest = _rest_objects(channels, registry)
    if scene_time <= 0:
        return PlaybackState(scene_time=scene_time, phase="before_start", objects=rest)

    objects: dict[str, dict[str, Any]] = {}
    active: list[ActiveEvent] = []
    holding = False
    for name, windows in channels.items():
        state = dict(rest[name])
        completed = sorted((w for w in windows if scene_time > w.end), key=lambda w: (w.end, w.index))
        for window in completed:
            state.update(_apply(registry, window, 1.0))
        current = [w for w in windows if w.t <= scene_time <= w.end]
        for window in current:
            progress = window.progress(scene_time)
            state.update(_apply(registry, window, progress))
            active.append(ActiveEvent(
                index=window.index,
                action=window.event.action,
                channel=name,
                progress=progress,
            ))
        if completed and not current:
            holding = True
        objects[name] = state

    active.sort(key=lambda a: a.index)
    phase = "active" if active else "holding" if holding else "rest"
    return PlaybackState(scene_time=scene_time, phase=phase, active=active, objects=objects)


def active_events(scene: Scene, global_time: float) -> list[int]:
    """Indices of events whose window contains *global_time*."""
    return [a.index for a in resolve_playback(scene, global_time).active]


def scene_at(scenes: list[Scene], global_time: float) -> int | None:
    """Index of the scene showing at *global_time*.

    Scene windows are half-open ``[start, end)`` except the last, which
    includes its end. Before the first scene this is the first scene;
    past the last one (or in a gap) it is the latest scene already begun.
    """
    if not scenes:
        return None
    order = sorted(range(len(scenes)), key=lambda i: scenes[i].start)
    last = order[-1]
    current = order[0]
    for i in order:
        scene = scenes[i]
        if scene.start <= global_time < scene.end or (i == last and global_time == scene.end):
            return i
        if scene.start <= global_time:
            current = i
    return current
