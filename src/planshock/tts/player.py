# src/planshock/tts/player.py

from __future__ import annotations

import asyncio
import io
import logging
import wave
from typing import Any

from ..core.ports import SpeechAudio

logger = logging.getLogger(__name__)


class AudioPlaybackError(RuntimeError):
    pass


class SoundDevicePlayer:
    """
    Plays PCM16/WAV clips through sounddevice.

    - sounddevice/numpy are imported on first use, so a machine without PortAudio
      can still run with speech disabled.
    - Playback rate is applied by scaling the output sample rate (pitch moves with it).
    - stop() interrupts the current clip; the pending play() then returns normally.
    """

    def __init__(self) -> None:
        self._sd: Any = None
        self._np: Any = None

    def _ensure_backend(self) -> None:
        if self._sd is not None:
            return
        try:
            import numpy as np  # type: ignore
            import sounddevice as sd  # type: ignore
        except (ImportError, OSError) as e:
            raise AudioPlaybackError(f"Audio backend unavailable: {e!r}") from e
        self._np = np
        self._sd = sd

    def _decode(self, audio: SpeechAudio) -> tuple[Any, int]:
        np = self._np
        if audio.format == "wav":
            with wave.open(io.BytesIO(audio.data), "rb") as wf:
                if wf.getsampwidth() != 2:
                    raise AudioPlaybackError(f"Unsupported WAV sample width: {wf.getsampwidth()}")
                frames = wf.readframes(wf.getnframes())
                channels = wf.getnchannels()
                sample_rate = wf.getframerate()
            samples = np.frombuffer(frames, dtype="<i2")
            if channels > 1:
                samples = samples.reshape(-1, channels)
            return samples, sample_rate
        if audio.format == "pcm":
            return np.frombuffer(audio.data, dtype="<i2"), audio.sample_rate
        raise AudioPlaybackError(f"Unsupported audio format: {audio.format}")

    def _play_blocking(self, samples: Any, sample_rate: int) -> None:
        self._sd.play(samples, sample_rate)
        self._sd.wait()

    async def play(self, audio: SpeechAudio, *, rate: float, volume: float) -> None:
        self._ensure_backend()
        samples, sample_rate = self._decode(audio)

        gain = min(1.0, max(0.0, float(volume)))
        scaled = (samples.astype(self._np.float32) / 32768.0) * gain
        out_rate = max(1, int(sample_rate * max(0.25, float(rate))))

        try:
            await asyncio.to_thread(self._play_blocking, scaled, out_rate)
        except Exception as e:
            raise AudioPlaybackError(f"Playback failed: {e!r}") from e

    def stop(self) -> None:
        if self._sd is None:
            return
        try:
            self._sd.stop()
        except Exception:
            logger.debug("sounddevice stop failed.", exc_info=True)
