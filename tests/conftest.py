"""Shared test fixtures for video-timeline-mcp."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from video_timeline_mcp.models.timeline import SynthesisResult


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable."""
    import importlib
    import pkgutil

    import video_timeline_mcp.tools as tools_pkg

    modules = []
    for info in pkgutil.walk_packages(tools_pkg.__path__, tools_pkg.__name__ + "."):
        try:
            modules.append(importlib.import_module(info.name))
        except Exception:
            pass

    for mod in modules:
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _set_dummy_api_key(monkeypatch):
    """Ensure tests never hit real Gemini API."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/video-timeline-mcp/.env."""
    monkeypatch.setattr(
        "video_timeline_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )


@pytest.fixture(autouse=True)
def _isolate_storage(tmp_path, monkeypatch):
    """Point cache, audio, project store and exports at a temp directory."""
    import video_timeline_mcp.config as cfg_mod
    import video_timeline_mcp.persistence as persistence_mod

    monkeypatch.setenv("TIMELINE_CACHE_DIR", str(tmp_path / "synthesis"))
    monkeypatch.setenv("TIMELINE_AUDIO_DIR", str(tmp_path / "audio"))
    monkeypatch.setenv("TIMELINE_PROJECT_DB", str(tmp_path / "projects.db"))
    monkeypatch.setenv("TIMELINE_EXPORT_DIR", str(tmp_path / "output"))
    cfg_mod._config = None
    persistence_mod.close_project_db()
    yield
    persistence_mod.close_project_db()
    cfg_mod._config = None


@pytest.fixture()
def clean_config():
    """Reset the config singleton between tests."""
    import video_timeline_mcp.config as cfg_mod

    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture()
def mock_gemini_client():
    """Patch GeminiClient.get(), .generate_json() and .synthesize_speech()."""
    with (
        patch("video_timeline_mcp.client.GeminiClient.get") as mock_get,
        patch(
            "video_timeline_mcp.client.GeminiClient.generate_json", new_callable=AsyncMock
        ) as mock_json,
        patch(
            "video_timeline_mcp.client.GeminiClient.synthesize_speech", new_callable=AsyncMock
        ) as mock_speech,
    ):
        client = MagicMock()
        mock_get.return_value = client
        yield {
            "get": mock_get,
            "generate_json": mock_json,
            "synthesize_speech": mock_speech,
            "client": client,
        }


class FakeSynthesizer:
    """Synthesizer returning scripted durations keyed by narration text.

    Text not in *durations* takes ``len(text) / 10`` seconds. Text in
    *fail_on* raises. Every call is recorded in ``calls``.
    """

    def __init__(self, durations: dict[str, float] | None = None, fail_on: set[str] | None = None):
        self.durations = durations or {}
        self.fail_on = fail_on or set()
        self.calls: list[tuple[str, str, float]] = []

    async def synthesize(self, text: str, *, voice: str, speed: float = 1.0) -> SynthesisResult:
        self.calls.append((text, voice, speed))
        if text in self.fail_on:
            raise RuntimeError(f"TTS rejected {text!r}")
        duration = self.durations.get(text, len(text) / 10)
        return SynthesisResult(audio_path=f"/audio/{len(self.calls)}.wav", duration_seconds=duration)


@pytest.fixture()
def fake_synthesizer():
    return FakeSynthesizer


SAMPLE_SPEC: dict = {
    "durationTarget": 120,
    "scenes": [
        {
            "type": "intro",
            "start": 0,
            "end": 15,
            "narration": ["Welcome to forces.", "Today we push things."],
            "events": [
                {"t": 0, "action": "reveal_text", "duration": 1.5, "text": "Forces", "color": "#ffff00"},
                {"t": 5, "action": "animate_vector_3d", "duration": 2, "params": {"direction": [1, 0, 0]}},
            ],
        },
        {
            "type": "skill1",
            "start": 15,
            "end": 60,
            "narration": ["Newton's first law."],
            "events": [
                {"t": 2, "action": "move", "duration": 2, "params": {"target": "puck", "to": [4, 0, 0]}},
                {"t": 10, "action": "move", "duration": 2, "params": {"target": "puck", "to": [4, 2, 0]}},
            ],
        },
        {
            "type": "skill2",
            "start": 60,
            "end": 105,
            "narration": ["Newton's second law.", "Force equals mass times acceleration."],
            "events": [{"t": 1, "action": "draw_eqn_3d", "duration": 3, "latex": "F = ma"}],
        },
        {
            "type": "summary",
            "start": 105,
            "end": 120,
            "narration": ["That is all."],
            "events": [],
        },
    ],
    "style": {
        "voice": "Kore",
        "colors": {"primary": "#F59E0B", "accent": "#3B82F6"},
        "transitions": 0.3,
    },
}


@pytest.fixture()
def sample_spec() -> dict:
    """A valid four-scene spec in the persisted (camelCase) shape."""
    return copy.deepcopy(SAMPLE_SPEC)
