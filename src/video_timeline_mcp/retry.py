"""Exponential backoff for transient Gemini script and speech calls."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .config import get_config

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_MARKERS: tuple[str, ...] = (
    "429",
    "quota",
    "resource_exhausted",
    "timeout",
    "timed out",
    "500 internal",
    "503",
    "service unavailable",
)


def is_transient(exc: Exception) -> bool:
    """True when *exc* looks like a rate limit, timeout or server hiccup."""
    if isinstance(exc, TimeoutError):
        return True
    msg = str(exc).lower()
    return any(marker in msg for marker in _TRANSIENT_MARKERS)


async def with_retry(call: Callable[[], Awaitable[T]]) -> T:
    """Await ``call()`` until it succeeds or a non-transient error occurs.

    Args:
        call: Zero-arg callable returning a fresh awaitable per attempt.

    Returns:
        The first successful result.

    Raises:
        The last exception once attempts run out, or any non-transient one.
    """
    cfg = get_config()
    attempts = cfg.retry_max_attempts

    for attempt in range(1, attempts + 1):
        try:
            return await call()
        except Exception as exc:
            if attempt == attempts or not is_transient(exc):
                raise
            delay = min(cfg.retry_base_delay * 2 ** (attempt - 1) + random.random(), cfg.retry_max_delay)
            logger.warning("Retry %d/%d after %.1fs: %s", attempt, attempts, delay, exc)
            await asyncio.sleep(delay)
    raise RuntimeError("unreachable: retry loop exited without result")
