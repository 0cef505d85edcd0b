"""Server configuration via environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

_APP_DIR = "video-timeline-mcp"


def _default_audio_dir() -> str:
    return str(Path.home() / ".cache" / _APP_DIR / "audio")


def _default_cache_dir() -> str:
    return str(Path.home() / ".cache" / _APP_DIR / "synthesis")


def _default_project_db() -> str:
    return str(Path.home() / ".local" / "share" / _APP_DIR / "projects.db")


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment.

    Timing knobs (``pause_padding``, ``gap_tolerance``) default to the
    values the narration pipeline has always used; they are exposed so
    the resolver and sync checks can be tuned without code changes.
    """

    gemini_api_key: str = Field(default="")
    script_model: str = Field(default="gemini-3-flash-preview")
    tts_model: str = Field(default="gemini-2.5-flash-preview-tts")
    default_voice: str = Field(default="Kore")
    speech_speed: float = Field(default=1.0)
    pause_padding: float = Field(default=1.5)
    gap_tolerance: float = Field(default=2.0)
    synthesis_concurrency: int = Field(default=1)
    audio_dir: str = Field(default="")
    cache_dir: str = Field(default="")
    cache_ttl_days: int = Field(default=30)
    project_db_path: str = Field(default="")
    export_dir: str = Field(default="output")
    retry_max_attempts: int = Field(default=3)
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=60.0)

    @field_validator("pause_padding", "gap_tolerance")
    @classmethod
    def validate_positive_seconds(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Timing tolerances must be > 0 seconds")
        return value

    @field_validator("speech_speed")
    @classmethod
    def validate_speech_speed(cls, value: float) -> float:
        if not 0.25 < value <= 4.0:
            raise ValueError(f"Invalid speech speed {value}. Allowed: (0.25, 4.0]")
        return value

    @field_validator("synthesis_concurrency", "cache_ttl_days", "retry_max_attempts")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("retry_base_delay", "retry_max_delay")
    @classmethod
    def validate_retry_delays(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Retry delay must be > 0")
        return value

    @property
    def resolved_audio_dir(self) -> Path:
        return Path(self.audio_dir or _default_audio_dir()).expanduser()

    @property
    def resolved_cache_dir(self) -> Path:
        return Path(self.cache_dir or _default_cache_dir()).expanduser()

    @property
    def resolved_project_db(self) -> Path:
        return Path(self.project_db_path or _default_project_db()).expanduser()

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            script_model=os.getenv("GEMINI_MODEL", "gemini-3-flash-preview"),
            tts_model=os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts"),
            default_voice=os.getenv("TIMELINE_DEFAULT_VOICE", "Kore"),
            speech_speed=float(os.getenv("TIMELINE_SPEECH_SPEED", "1.0")),
            pause_padding=float(os.getenv("TIMELINE_PAUSE_PADDING", "1.5")),
            gap_tolerance=float(os.getenv("TIMELINE_GAP_TOLERANCE", "2.0")),
            synthesis_concurrency=int(os.getenv("TIMELINE_SYNTH_CONCURRENCY", "1")),
            audio_dir=os.getenv("TIMELINE_AUDIO_DIR", ""),
            cache_dir=os.getenv("TIMELINE_CACHE_DIR", ""),
            cache_ttl_days=int(os.getenv("TIMELINE_CACHE_TTL_DAYS", "30")),
            project_db_path=os.getenv("TIMELINE_PROJECT_DB", ""),
            export_dir=os.getenv("TIMELINE_EXPORT_DIR", "output"),
            retry_max_attempts=int(os.getenv("GEMINI_RETRY_MAX_ATTEMPTS", "3")),
            retry_base_delay=float(os.getenv("GEMINI_RETRY_BASE_DELAY", "1.0")),
            retry_max_delay=float(os.getenv("GEMINI_RETRY_MAX_DELAY", "60.0")),
        )


# Process-wide singleton, built on first access.
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/video-timeline-mcp/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logger = logging.getLogger(__name__)
            logger.info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config (used by the ``infra_config`` tool)."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
