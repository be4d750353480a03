# src/planshock/tts/speech_queue.py

"""
Single-flight speech queue.

One global FIFO shared by every task session:
- at most one clip is being synthesized/played at any time,
- audio is cached per exact (style, message) pair for the lifetime of the queue,
- `interrupt=True` stops the current clip and drops everything pending,
- a failing job rejects only its own future; the queue moves on.

Dropped jobs (interrupt, disable, close) are never settled. Callers treat the
returned future as fire-and-forget.

All methods must be called from the event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass

from ..core.persona import NagStyle, preset_for
from ..core.ports import AudioPlayer, SpeechAudio, SpeechSynthesizer

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class SpeechJob:
    message: str
    style: NagStyle
    future: asyncio.Future[None]


class SpeechQueue:
    def __init__(self, synthesizer: SpeechSynthesizer, player: AudioPlayer, *, enabled: bool = True) -> None:
        self._synth = synthesizer
        self._player = player
        self._enabled = enabled
        self._closed = False

        self._pending: deque[SpeechJob] = deque()
        self._current: SpeechJob | None = None
        self._current_task: asyncio.Task[None] | None = None
        self._cache: dict[tuple[NagStyle, str], SpeechAudio] = {}

    @property
    def enabled(self) -> bool:
        return self._enabled and not self._closed

    @property
    def is_playing(self) -> bool:
        return self._current_task is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def enqueue(self, message: str, style: NagStyle, *, interrupt: bool = False) -> asyncio.Future[None]:
        loop = asyncio.get_running_loop()
        fut: asyncio.Future[None] = loop.create_future()

        if not self.enabled:
            fut.set_result(None)
            return fut

        if interrupt:
            self._drop_all()

        self._pending.append(SpeechJob(message=message, style=style, future=fut))
        logger.debug("Speech job queued style=%s pending=%d interrupt=%s", style.value, len(self._pending), interrupt)
        self._pump()
        return fut

    def set_enabled(self, enabled: bool) -> None:
        if enabled == self._enabled:
            return
        self._enabled = enabled
        if not enabled:
            self._drop_all()
            logger.info("Speech disabled.")
            return
        logger.info("Speech enabled.")
        self._pump()

    def close(self) -> None:
        self._drop_all()
        self._closed = True
        self._cache.clear()

    # ---- internals ----

    def _drop_all(self) -> None:
        dropped = len(self._pending)
        self._pending.clear()

        task = self._current_task
        self._current_task = None
        self._current = None

        if task is not None:
            self._player.stop()
            if not task.done():
                task.cancel()
            dropped += 1

        if dropped:
            logger.debug("Speech queue dropped %d job(s).", dropped)

    def _pump(self) -> None:
        if self._current_task is not None or not self.enabled or not self._pending:
            return

        job = self._pending.popleft()
        task = asyncio.get_running_loop().create_task(self._run_job(job), name="speech-job")
        self._current = job
        self._current_task = task
        task.add_done_callback(self._on_job_done)

    def _on_job_done(self, task: asyncio.Task[None]) -> None:
        # A replaced task (interrupt/disable) must not drain the queue.
        if task is not self._current_task:
            return
        self._current_task = None
        self._current = None
        self._pump()

    async def _audio_for(self, message: str, style: NagStyle) -> SpeechAudio:
        key = (style, message)
        audio = self._cache.get(key)
        if audio is None:
            audio = await self._synth.synthesize(message, style)
            self._cache[key] = audio
        return audio

    async def _run_job(self, job: SpeechJob) -> None:
        try:
            audio = await self._audio_for(job.message, job.style)
            preset = preset_for(job.style)
            await self._player.play(audio, rate=preset.rate, volume=preset.volume)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Speech job failed style=%s: %s", job.style.value, e)
            if not job.future.done():
                job.future.set_exception(e)
            return

        if not job.future.done():
            job.future.set_result(None)
