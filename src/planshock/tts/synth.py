# src/planshock/tts/synth.py

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx
from openai import AsyncOpenAI

from ..core.persona import STYLE_VOICES, NagStyle
from ..core.ports import SpeechAudio

logger = logging.getLogger(__name__)

OPENAI_PCM_SAMPLE_RATE = 24000


class SpeechSynthesisError(RuntimeError):
    pass


class OpenAISpeechSynthesizer:
    """
    OpenAI speech endpoint, raw PCM output.

    Each style maps to a voice; when that voice fails the request is retried once
    with the default voice before the error surfaces.
    """

    def __init__(self, settings: Any) -> None:
        api_key = getattr(settings, "openai_api_key", None)
        if not api_key or not str(api_key).strip():
            raise SpeechSynthesisError("TTS API key is not set. Set PLANSHOCK_OPENAI_API_KEY in your .env.")

        base_url = (getattr(settings, "openai_base_url", "") or "").strip()
        connect_s = float(getattr(settings, "llm_connect_timeout", 5.0))
        read_s = float(getattr(settings, "llm_read_timeout", 25.0))

        self._model = str(getattr(settings, "tts_model", "gpt-4o-mini-tts"))
        self._default_voice = str(getattr(settings, "tts_default_voice", "alloy"))
        self._client = AsyncOpenAI(
            api_key=str(api_key),
            base_url=base_url or None,
            timeout=httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s),
            max_retries=0,
        )

    async def _invoke(self, text: str, voice: str) -> bytes:
        resp = await self._client.audio.speech.create(
            model=self._model,
            voice=voice,
            input=text,
            response_format="pcm",
        )
        return resp.content

    async def synthesize(self, text: str, style: NagStyle) -> SpeechAudio:
        voice = STYLE_VOICES.get(style, self._default_voice)
        try:
            data = await self._invoke(text, voice)
        except Exception as e:
            if voice == self._default_voice:
                raise SpeechSynthesisError(f"TTS failed: {e}") from e
            logger.warning("TTS voice %r failed (%s). Falling back to %s.", voice, e.__class__.__name__, self._default_voice)
            try:
                data = await self._invoke(text, self._default_voice)
            except Exception as e2:
                raise SpeechSynthesisError(f"TTS failed: {e2}") from e2

        return SpeechAudio(data=data, format="pcm", sample_rate=OPENAI_PCM_SAMPLE_RATE)

    async def aclose(self) -> None:
        await self._client.close()


class XTTSSynthesizer:
    """
    Local Coqui XTTS synthesizer (optional dependencies).

    Design goals:
    - Optional dependencies: does not crash if torch/TTS are not installed,
      `enabled` just stays False.
    - Synthesis runs in a worker thread so the event loop keeps ticking.

    Style has no effect on the voice here; the playback preset still applies.
    """

    def __init__(self, settings: Any) -> None:
        self.enabled = False
        self._model: Any = None
        self._np: Any = None
        self._sample_rate = 24000
        self._language = str(getattr(settings, "xtts_language", "en"))
        self._speaker_name = str(getattr(settings, "xtts_speaker_name", "Ana Florence"))
        self._speaker_wav: str | None = None

        # NOTE: imports can be slow, log before doing them so the user isn't stuck in silence.
        logger.info("XTTS enabling: importing dependencies (torch/TTS)... this may take a while.")
        try:
            import numpy as np  # type: ignore
            import torch  # type: ignore
            from TTS.api import TTS  # type: ignore
        except ImportError as e:
            logger.warning(
                "XTTS backend selected, but dependencies are missing. "
                "Install the 'xtts' extra to enable it. Error: %s",
                repr(e),
            )
            return

        wav_path = (getattr(settings, "speaker_wav", "") or "").strip()
        if wav_path:
            p = Path(wav_path)
            if p.is_file():
                self._speaker_wav = str(p)
            else:
                logger.warning("speaker_wav is set but file does not exist: %s. Falling back to speaker name.", wav_path)

        try:
            device = "cuda" if torch.cuda.is_available() else "cpu"
            logger.info("Initializing XTTS (device=%s). First run may download large model files.", device)
            self._model = TTS("tts_models/multilingual/multi-dataset/xtts_v2").to(device)
            sr = getattr(getattr(self._model, "synthesizer", None), "output_sample_rate", None)
            self._sample_rate = int(sr) if sr else 24000
        except Exception as e:
            logger.error("Failed to initialize XTTS model: %s", repr(e))
            return

        self._np = np
        self.enabled = True
        logger.info("XTTS ready (sample_rate=%s).", self._sample_rate)

    def _synthesize_blocking(self, text: str) -> bytes:
        if self._speaker_wav:
            wav = self._model.tts(text=text, language=self._language, speaker_wav=self._speaker_wav)
        else:
            wav = self._model.tts(text=text, language=self._language, speaker=self._speaker_name)
        np = self._np
        samples = np.clip(np.asarray(wav, dtype=np.float32), -1.0, 1.0)
        return (samples * 32767.0).astype("<i2").tobytes()

    async def synthesize(self, text: str, style: NagStyle) -> SpeechAudio:
        if not self.enabled:
            raise SpeechSynthesisError("XTTS is not available.")
        text = " ".join(text.split()).strip()
        try:
            data = await asyncio.to_thread(self._synthesize_blocking, text)
        except Exception as e:
            raise SpeechSynthesisError(f"XTTS synthesis failed: {e!r}") from e
        return SpeechAudio(data=data, format="pcm", sample_rate=self._sample_rate)


class NullSynthesizer:
    """Used when TTS is off or not configured; every job fails fast and the queue moves on."""

    def __init__(self, reason: str = "TTS is disabled.") -> None:
        self._reason = reason

    async def synthesize(self, text: str, style: NagStyle) -> SpeechAudio:
        raise SpeechSynthesisError(self._reason)
