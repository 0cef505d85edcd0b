"""Speech synthesis collaborators.

The narration resolver only needs ``synthesize(text, voice, speed)`` to
return an audio path and a duration. ``GeminiSpeechSynthesizer`` renders
with Gemini TTS and measures the PCM it gets back; ``CachingSynthesizer``
puts the content-hash cache in front of any synthesizer.
"""

from __future__ import annotations

import logging
import wave
from pathlib import Path
from typing import Protocol, runtime_checkable

from . import cache
from .client import GeminiClient
from .config import get_config
from .errors import SynthesisError
from .models.timeline import SynthesisResult

logger = logging.getLogger(__name__)

PCM_SAMPLE_RATE = 24_000
PCM_SAMPLE_WIDTH = 2
PCM_CHANNELS = 1


@runtime_checkable
class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str, *, voice: str, speed: float = 1.0) -> SynthesisResult:
        ...


def pcm_duration(pcm: bytes) -> float:
    """Seconds of audio in a 24 kHz 16-bit mono PCM buffer."""
    return len(pcm) / (PCM_SAMPLE_RATE * PCM_SAMPLE_WIDTH * PCM_CHANNELS)


def write_wav(path: Path, pcm: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(PCM_CHANNELS)
        wf.setsampwidth(PCM_SAMPLE_WIDTH)
        wf.setframerate(PCM_SAMPLE_RATE)
        wf.writeframes(pcm)


def _speech_prompt(text: str, speed: float) -> str:
    if abs(speed - 1.0) < 1e-6:
        return text
    pace = "faster" if speed > 1.0 else "slower"
    return f"Read the following {pace} than normal, at about {speed:g}x pace: {text}"


class GeminiSpeechSynthesizer:
    """Gemini TTS backed synthesizer writing one WAV file per chunk."""

    def __init__(self, audio_dir: Path | None = None, *, model: str | None = None) -> None:
        cfg = get_config()
        self.audio_dir = audio_dir or cfg.resolved_audio_dir
        self.model = model or cfg.tts_model

    async def synthesize(self, text: str, *, voice: str, speed: float = 1.0) -> SynthesisResult:
        if not text.strip():
            raise SynthesisError("Cannot synthesize empty narration text")
        pcm = await GeminiClient.synthesize_speech(
            _speech_prompt(text, speed), voice=voice, model=self.model,
        )
        if not pcm:
            raise SynthesisError(f"TTS returned no audio for voice {voice!r}")

        key = cache.content_hash(text, voice, speed, self.model)
        path = self.audio_dir / f"narration_{key[:16]}.wav"
        write_wav(path, pcm)
        duration = pcm_duration(pcm)
        logger.info("Generated audio %s (%.2fs)", path.name, duration)
        return SynthesisResult(audio_path=str(path), duration_seconds=duration)


class CachingSynthesizer:
    """Serve repeat (text, voice, speed) requests from the synthesis cache."""

    def __init__(self, inner: SpeechSynthesizer, *, model_tag: str = "") -> None:
        self.inner = inner
        self.model_tag = model_tag

    async def synthesize(self, text: str, *, voice: str, speed: float = 1.0) -> SynthesisResult:
        key = cache.content_hash(text, voice, speed, self.model_tag)
        cached = cache.load(key)
        if cached is not None:
            return cached
        result = await self.inner.synthesize(text, voice=voice, speed=speed)
        cache.save(key, result, text=text, voice=voice, speed=speed)
        return result


def default_synthesizer() -> SpeechSynthesizer:
    """Gemini TTS behind the synthesis cache, configured from env."""
    model = get_config().tts_model
    return CachingSynthesizer(GeminiSpeechSynthesizer(model=model), model_tag=model)
