"""File-based synthesis cache keyed by content hash, with TTL.

A narration chunk is only re-synthesized when its text, voice, speed or
TTS model changes; everything else is served from here, which lets the
audio segment map be rebuilt cheaply after edits elsewhere in the spec.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path

from .config import get_config
from .models.timeline import SynthesisResult

logger = logging.getLogger(__name__)


def _cache_dir() -> Path:
    """Return the cache directory path, creating it if needed."""
    d = get_config().resolved_cache_dir
    d.mkdir(parents=True, exist_ok=True)
    return d


def content_hash(text: str, voice: str, speed: float, model: str = "") -> str:
    """Stable hash of everything that affects the synthesized audio."""
    payload = json.dumps([text, voice, round(float(speed), 4), model], ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def cache_path(key: str) -> Path:
    return _cache_dir() / f"{key}.json"


def load(key: str) -> SynthesisResult | None:
    """Return the cached result, or None on miss, expiry or missing audio."""
    p = cache_path(key)
    if not p.exists():
        return None
    mtime = datetime.fromtimestamp(p.stat().st_mtime)
    if datetime.now() > mtime + timedelta(days=get_config().cache_ttl_days):
        logger.debug("Cache expired: %s", p.name)
        return None
    try:
        data = json.loads(p.read_text())
        result = SynthesisResult(
            audio_path=data["audio_path"],
            duration_seconds=data["duration_seconds"],
        )
    except (json.JSONDecodeError, KeyError, ValueError, OSError) as exc:
        logger.warning("Cache read error: %s", exc)
        return None
    if not Path(result.audio_path).exists():
        logger.info("Cache entry %s points at missing audio, ignoring", p.name)
        return None
    logger.info("Cache hit: %s", p.name)
    return result


def save(key: str, result: SynthesisResult, *, text: str = "", voice: str = "", speed: float = 1.0) -> bool:
    """Write *result* to cache atomically. Returns True on success."""
    p = cache_path(key)
    tmp = p.with_suffix(".json.tmp")
    envelope = {
        "cached_at": datetime.now().isoformat(),
        "voice": voice,
        "speed": speed,
        "text_preview": text[:80],
        **result.model_dump(),
    }
    try:
        tmp.write_text(json.dumps(envelope, indent=2))
        os.replace(tmp, p)
        logger.info("Cached: %s", p.name)
        return True
    except OSError as exc:
        logger.warning("Cache write error: %s", exc)
        tmp.unlink(missing_ok=True)
        return False


def clear(voice: str | None = None) -> int:
    """Remove cache entries. If *voice* is given, only entries for that voice."""
    removed = 0
    for f in _cache_dir().glob("*.json"):
        if voice is not None:
            try:
                if json.loads(f.read_text()).get("voice") != voice:
                    continue
            except (json.JSONDecodeError, OSError):
                continue
        try:
            f.unlink()
            removed += 1
        except OSError as exc:
            logger.warning("Could not remove %s: %s", f.name, exc)
    return removed


def stats() -> dict:
    """Return cache statistics."""
    d = _cache_dir()
    files = list(d.glob("*.json"))
    total = sum(f.stat().st_size for f in files)
    return {
        "cache_dir": str(d),
        "total_files": len(files),
        "total_size_mb": round(total / (1024 * 1024), 2),
        "ttl_days": get_config().cache_ttl_days,
    }


def list_entries() -> list[dict]:
    """List all cached entries with metadata, newest first."""
    entries = []
    for f in _cache_dir().glob("*.json"):
        try:
            data = json.loads(f.read_text())
        except (json.JSONDecodeError, OSError):
            continue
        entries.append({
            "key": f.stem,
            "voice": data.get("voice"),
            "duration_seconds": data.get("duration_seconds"),
            "text_preview": data.get("text_preview"),
            "cached_at": data.get("cached_at"),
        })
    return sorted(entries, key=lambda x: x.get("cached_at") or "", reverse=True)
