"""Narration timing — place synthesized chunks on the absolute timeline.

Chunks are laid out back to back from t=0 in scene order, then chunk
order, with a fixed pause between consecutive chunks. Segments are not
clipped to scene bounds; ``timeline.sync.check_scene_fit`` reports when
narration drifts past the scenes it belongs to.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..models.spec import AudioSegment, Scene
from ..models.timeline import NarrationResult, SynthesisFailure, SynthesisResult

if TYPE_CHECKING:
    from ..synthesis import SpeechSynthesizer

logger = logging.getLogger(__name__)

PAUSE_PADDING = 1.5

ProgressCallback = Callable[[int, int], None]


def chunk_id(scene_index: int, chunk_index: int) -> str:
    """Audio segment map key for a narration chunk."""
    return f"scene{scene_index}_chunk{chunk_index}"


@dataclass(frozen=True)
class NarrationChunk:
    scene_index: int
    chunk_index: int
    text: str

    @property
    def id(self) -> str:
        return chunk_id(self.scene_index, self.chunk_index)


def flatten_narration(scenes: Sequence[Scene]) -> list[NarrationChunk]:
    """List every narration chunk in playback order."""
    return [
        NarrationChunk(scene_index=i, chunk_index=j, text=text)
        for i, scene in enumerate(scenes)
        for j, text in enumerate(scene.narration)
    ]


def compute_segment_map(
    chunks: Sequence[NarrationChunk],
    results: Sequence[SynthesisResult],
    *,
    pause_padding: float = PAUSE_PADDING,
) -> dict[str, AudioSegment]:
    """Assign start/end times from known per-chunk durations.

    ``results[i]`` belongs to ``chunks[i]``; the order of ``chunks`` is the
    playback order regardless of the order synthesis finished in.
    """
    if len(chunks) != len(results):
        raise ValueError(f"Got {len(results)} synthesis results for {len(chunks)} chunks")

    segments: dict[str, AudioSegment] = {}
    cursor = 0.0
    for chunk, result in zip(chunks, results):
        end = cursor + result.duration_seconds
        segments[chunk.id] = AudioSegment(path=result.audio_path, start=cursor, end=end)
        cursor = end + pause_padding
    return segments


class _ChunkFailed(Exception):
    def __init__(self, chunk: NarrationChunk, cause: Exception) -> None:
        self.chunk = chunk
        self.cause = cause
        super().__init__(f"{chunk.id}: {cause}")


def _failure(chunk: NarrationChunk, cause: Exception) -> NarrationResult:
    logger.warning("Narration synthesis aborted at %s: %s", chunk.id, cause)
    return NarrationResult(failure=SynthesisFailure(chunk_id=chunk.id, cause=str(cause) or type(cause).__name__))


async def _synthesize_sequential(
    chunks: list[NarrationChunk],
    synthesizer: SpeechSynthesizer,
    voice: str,
    speed: float,
    on_progress: ProgressCallback | None,
) -> list[SynthesisResult]:
    results: list[SynthesisResult] = []
    for n, chunk in enumerate(chunks, start=1):
        try:
            result = await synthesizer.synthesize(chunk.text, voice=voice, speed=speed)
        except Exception as exc:
            raise _ChunkFailed(chunk, exc) from exc
        results.append(result)
        logger.debug("Synthesized %s (%.2fs)", chunk.id, result.duration_seconds)
        if on_progress is not None:
            on_progress(n, len(chunks))
    return results


async def _synthesize_parallel(
    chunks: list[NarrationChunk],
    synthesizer: SpeechSynthesizer,
    voice: str,
    speed: float,
    concurrency: int,
    on_progress: ProgressCallback | None,
) -> list[SynthesisResult]:
    semaphore = asyncio.Semaphore(concurrency)
    done = 0

    async def _one(chunk: NarrationChunk) -> SynthesisResult:
        nonlocal done
        async with semaphore:
            try:
                result = await synthesizer.synthesize(chunk.text, voice=voice, speed=speed)
            except Exception as exc:
                raise _ChunkFailed(chunk, exc) from exc
        done += 1
        if on_progress is not None:
            on_progress(done, len(chunks))
        return result

    tasks = [asyncio.ensure_future(_one(c)) for c in chunks]
    try:
        return list(await asyncio.gather(*tasks))
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        # Collect cancelled and failed siblings so none is left unretrieved.
        await asyncio.gather(*tasks, return_exceptions=True)


async def resolve_narration(
    scenes: Sequence[Scene],
    synthesizer: SpeechSynthesizer,
    *,
    voice: str,
    speed: float = 1.0,
    pause_padding: float = PAUSE_PADDING,
    concurrency: int = 1,
    on_progress: ProgressCallback | None = None,
) -> NarrationResult:
    """Synthesize every narration chunk and build the audio segment map.

    Args:
        scenes: Scenes in timeline order.
        synthesizer: Speech collaborator; only its durations drive timing.
        voice: Voice name passed to the synthesizer.
        speed: Speaking rate passed to the synthesizer.
        pause_padding: Silence inserted after each chunk, in seconds.
        concurrency: 1 synthesizes chunk by chunk; higher values issue up
            to that many requests at once. Timestamps are identical.
        on_progress: Called with ``(done, total)`` after each chunk.

    Returns:
        NarrationResult with the full segment map, or with ``failure`` set
        and no segments if any chunk could not be synthesized.
    """
    chunks = flatten_narration(scenes)
    if not chunks:
        return NarrationResult()

    logger.info("Synthesizing %d narration chunk(s) with voice %s", len(chunks), voice)
    try:
        if concurrency <= 1:
            results = await _synthesize_sequential(chunks, synthesizer, voice, speed, on_progress)
        else:
            results = await _synthesize_parallel(
                chunks, synthesizer, voice, speed, concurrency, on_progress,
            )
    except _ChunkFailed as exc:
        return _failure(exc.chunk, exc.cause)

    segments = compute_segment_map(chunks, results, pause_padding=pause_padding)
    result = NarrationResult(segments=segments)
    logger.info("Narration timeline resolved: %d segment(s), %.2fs", len(segments), result.total_duration)
    return result
