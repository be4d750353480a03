# src/planshock/alerts/dispatcher.py

"""
Alert dispatcher.

Turns an AlertEvent into a spoken/notified nag line for one task session:

1. get a line for (session generation, style), memoized on the session;
2. drop the result if the session moved to a newer generation meanwhile;
3. drop the alert (text still updates) if the style changed since the previous
   dispatch or while the line was being generated;
4. swallow the first event of a task that was created moments ago already in the
   tier it is alerting about;
5. otherwise notify and enqueue speech with interrupt.

Generation failures put a friendly error on the session and fall back to the
template line, so the alert still fires.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from ..core.persona import NagStyle
from ..core.ports import MessageGenerator, NotificationSink
from ..llm.client import friendly_llm_error_message
from .messages import generate_nag_message
from .thresholds import AlertEvent
from .urgency import UrgencyTier

if TYPE_CHECKING:
    from ..tts.speech_queue import SpeechQueue
    from .engine import TaskAlertSession

logger = logging.getLogger(__name__)


def _log_playback_result(fut: asyncio.Future[None]) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        logger.warning("Speech playback failed: %s", exc)


class AlertDispatcher:
    """
    Live toggles (`style`, `speech_enabled`, `notifications_enabled`) are plain
    attributes; the engine flips them on the loop thread.
    """

    def __init__(
        self,
        generator: MessageGenerator,
        speech: SpeechQueue,
        notifier: NotificationSink,
        *,
        style: NagStyle = NagStyle.DRILL_SERGEANT,
        locale: str = "en",
        grace_seconds: float = 60.0,
        speech_enabled: bool = True,
        notifications_enabled: bool = True,
    ) -> None:
        self._generator = generator
        self.speech = speech
        self._notifier = notifier
        self._locale = locale
        self._grace = timedelta(seconds=max(0.0, float(grace_seconds)))

        self.style = style
        self.speech_enabled = speech_enabled
        self.notifications_enabled = notifications_enabled

    async def line_for(
        self, session: TaskAlertSession, generation: int, style: NagStyle, now: datetime
    ) -> str | None:
        """
        Text for this generation/style, or None when the generation is stale.
        Applies the result to the session display fields.
        """
        memo = session.memo
        if memo is not None and memo[0] == generation and memo[1] == style:
            return memo[2]

        task = session.task
        session.loading = True
        session.error = None

        try:
            text = (await self._generator.generate(task, style, now)).strip()
            if not text:
                raise RuntimeError("Generator returned an empty line.")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if generation != session.generation:
                return None
            logger.warning("Nag line generation failed task=%s: %s", task.id, e)
            session.error = friendly_llm_error_message(e)
            text = generate_nag_message(task, style, now, self._locale)

        if generation != session.generation:
            logger.debug("Discarding stale line task=%s generation=%s current=%s", task.id, generation, session.generation)
            return None

        session.loading = False
        session.message = text
        session.memo = (generation, style, text)
        return text

    async def refresh(self, session: TaskAlertSession, generation: int, now: datetime) -> None:
        """Update the displayed line without speaking (mount, style change)."""
        style = self.style
        line = await self.line_for(session, generation, style, now)
        if line is not None:
            session.last_style = style

    async def dispatch(self, session: TaskAlertSession, event: AlertEvent, generation: int) -> bool:
        """Returns True when the alert actually fired."""
        if session.spoken_generation == generation:
            return False

        style = self.style
        line = await self.line_for(session, generation, style, event.at)
        if line is None:
            return False

        style_changed = self.style != style or session.last_style != style
        session.last_style = self.style
        session.spoken_generation = generation

        if style_changed:
            logger.debug("Style changed; alert %s for task %s not spoken.", event.key, event.task_id)
            return False

        state = session.scheduler.state
        if not state.has_skipped_initial_event:
            state.has_skipped_initial_event = True
            if self._is_initial_echo(session, event):
                logger.debug("Suppressed initial alert %s for new task %s.", event.key, event.task_id)
                return False

        self._fire(session, line, style)
        logger.info("Alert fired task=%s key=%s tier=%s", event.task_id, event.key, event.tier.value)
        return True

    def _is_initial_echo(self, session: TaskAlertSession, event: AlertEvent) -> bool:
        state = session.scheduler.state
        if state.initial_tier == UrgencyTier.SAFE:
            return False
        if event.tier != state.initial_tier:
            return False
        return event.at - session.task.created_at < self._grace

    def _fire(self, session: TaskAlertSession, line: str, style: NagStyle) -> None:
        if self.notifications_enabled:
            try:
                self._notifier.notify(session.task.display_name, line)
            except Exception:
                logger.exception("Notifier failed task=%s", session.task.id)

        if self.speech_enabled:
            fut = self.speech.enqueue(line, style, interrupt=True)
            fut.add_done_callback(_log_playback_result)
