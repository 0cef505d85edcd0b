"""Load timeline server settings from a shared ``.env`` file.

Values in ``~/.config/video-timeline-mcp/.env`` fill in variables the
MCP host did not set, so API keys and timing overrides survive across
workspaces. No external dependencies.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "video-timeline-mcp" / ".env"


def _needs_value(key: str, current: str | None) -> bool:
    """Return True when *current* should be replaced from the file.

    Blank values and unexpanded self-references such as ``${GEMINI_API_KEY}``
    or ``${GEMINI_API_KEY:-}`` count as unset.
    """
    if current is None:
        return True

    value = _strip_quotes(current.strip()).strip()
    if not value:
        return True
    if value in {f"${key}", f"${{{key}}}"}:
        return True
    return value.startswith(f"${{{key}:-") and value.endswith("}")


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines from *path*.

    Handles quoted values, an optional ``export`` prefix, blank lines and
    ``#`` comments. Lines without ``=`` are ignored. No interpolation.
    """
    result: dict[str, str] = {}
    if not path.is_file():
        return result

    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        result[key] = _strip_quotes(value.strip())
    return result


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Copy variables from *path* into ``os.environ`` where they are unset.

    Args:
        path: ``.env`` file to read. Defaults to :data:`DEFAULT_ENV_PATH`.

    Returns:
        The variables that were injected.
    """
    parsed = parse_dotenv(path or DEFAULT_ENV_PATH)
    injected: dict[str, str] = {}
    for key, value in parsed.items():
        if _needs_value(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
