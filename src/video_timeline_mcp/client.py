"""Shared Gemini client pool for script generation and speech synthesis."""

from __future__ import annotations

import logging
import os
from typing import Any

from google import genai
from google.genai import types

from .config import get_config
from .retry import with_retry

logger = logging.getLogger(__name__)


class GeminiClient:
    """Process-wide Gemini client pool (one client per API key)."""

    _clients: dict[str, genai.Client] = {}

    @classmethod
    def get(cls, api_key: str | None = None) -> genai.Client:
        """Return (or create) the shared client for *api_key*."""
        key = api_key or get_config().gemini_api_key or os.getenv("GEMINI_API_KEY", "")
        if not key:
            raise ValueError("No Gemini API key — set GEMINI_API_KEY or pass api_key explicitly")
        if key not in cls._clients:
            cls._clients[key] = genai.Client(api_key=key)
            logger.info("Created Gemini client (key …%s)", key[-4:])
        return cls._clients[key]

    @classmethod
    async def generate_json(
        cls,
        contents: Any,
        *,
        system_instruction: str | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        seed: int | None = None,
    ) -> str:
        """Generate a JSON document and return the raw response text.

        Args:
            contents: Prompt contents.
            system_instruction: System-level instruction for the model.
            model: Override model ID (defaults to config's script_model).
            temperature: Sampling temperature.
            seed: Fixed seed for reproducible drafts.

        Returns:
            The model's text response (expected to be JSON).
        """
        config = types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type="application/json",
        )
        if system_instruction:
            config.system_instruction = system_instruction
        if seed is not None:
            config.seed = seed

        client = cls.get()
        response = await with_retry(
            lambda: client.aio.models.generate_content(
                model=model or get_config().script_model,
                contents=contents,
                config=config,
            )
        )
        parts = response.candidates[0].content.parts if response.candidates else []
        text_parts = [p.text for p in parts if p.text and not getattr(p, "thought", False)]
        return "\n".join(text_parts) if text_parts else (response.text or "")

    @classmethod
    async def synthesize_speech(
        cls,
        text: str,
        *,
        voice: str,
        model: str | None = None,
    ) -> bytes:
        """Render *text* with a prebuilt voice; returns raw 24 kHz 16-bit mono PCM."""
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
                ),
            ),
        )
        client = cls.get()
        response = await with_retry(
            lambda: client.aio.models.generate_content(
                model=model or get_config().tts_model,
                contents=text,
                config=config,
            )
        )
        parts = response.candidates[0].content.parts if response.candidates else []
        for part in parts:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return inline.data
        raise RuntimeError("Gemini TTS response contained no audio data")

    @classmethod
    async def close_all(cls) -> int:
        """Shut down all shared clients. Returns count closed."""
        count = 0
        for client in list(cls._clients.values()):
            try:
                await client.aio.aclose()
            except Exception as exc:
                logger.debug("Async client close failed: %s", exc)
            try:
                client.close()
            except Exception as exc:
                logger.debug("Client close failed: %s", exc)
            count += 1
        cls._clients.clear()
        logger.info("Closed %d Gemini client(s)", count)
        return count
