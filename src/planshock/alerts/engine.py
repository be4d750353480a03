# src/planshock/alerts/engine.py

"""
Alert engine.

Owns one TaskAlertSession per visible task instance and drives them:
- sync(tasks, now) reconciles sessions with a fresh task snapshot,
- tick(now) advances every scheduler and launches dispatches for emitted events,
- run_alert_engine(...) is the polling loop (cancel it or set stop_event to stop).

Every session carries a generation counter. Launching a dispatch/refresh bumps it
and cancels the previous in-flight asyncio task, so a stale line can never overwrite
a newer one.

The session map is replaced, never mutated, once published: the console thread
reads it through sessions()/session_for() while the loop thread syncs.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from ..core.persona import NagStyle
from ..core.ports import Clock, TaskRepo
from ..tasks.task_models import Task
from .dispatcher import AlertDispatcher
from .thresholds import AlertEvent, ThresholdScheduler
from .urgency import UrgencyTier, classify

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class TaskAlertSession:
    task: Task
    scheduler: ThresholdScheduler
    last_style: NagStyle

    generation: int = 0
    spoken_generation: int = -1
    memo: tuple[int, NagStyle, str] | None = None
    inflight: asyncio.Task[object] | None = None

    # Display fields
    message: str | None = None
    error: str | None = None
    loading: bool = False

    def shows_nag(self, now: datetime) -> bool:
        if self.task.completed:
            return False
        return classify(self.task.deadline, self.task.estimated_hours, now) != UrgencyTier.SAFE

    def next_generation(self) -> int:
        self.cancel()
        self.generation += 1
        return self.generation

    def cancel(self) -> None:
        task = self.inflight
        self.inflight = None
        if task is not None and not task.done():
            task.cancel()


class AlertEngine:
    def __init__(self, dispatcher: AlertDispatcher) -> None:
        self.dispatcher = dispatcher
        self._sessions: dict[int, TaskAlertSession] = {}
        self._closed = False

    @property
    def style(self) -> NagStyle:
        return self.dispatcher.style

    def sessions(self) -> list[TaskAlertSession]:
        return list(self._sessions.values())

    def session_for(self, task_id: int) -> TaskAlertSession | None:
        return self._sessions.get(task_id)

    # ---- reconciliation ----

    def _new_session(self, task: Task, now: datetime) -> TaskAlertSession:
        session = TaskAlertSession(
            task=task,
            scheduler=ThresholdScheduler(task, now),
            last_style=self.dispatcher.style,
        )
        if session.shows_nag(now):
            self._launch(session, self.dispatcher.refresh(session, session.next_generation(), now))
        return session

    def sync(self, tasks: Iterable[Task], now: datetime) -> None:
        if self._closed:
            return

        sessions = dict(self._sessions)
        seen: set[int] = set()
        for task in tasks:
            seen.add(task.id)
            session = sessions.get(task.id)

            if session is None:
                sessions[task.id] = self._new_session(task, now)
                logger.debug("Session created task=%s", task.id)
                continue

            if session.task.instance_key != task.instance_key:
                session.cancel()
                sessions[task.id] = self._new_session(task, now)
                logger.debug("Session re-keyed task=%s", task.id)
                continue

            session.task = task

        for task_id in [tid for tid in sessions if tid not in seen]:
            sessions.pop(task_id).cancel()
            logger.debug("Session removed task=%s", task_id)

        self._sessions = sessions

    # ---- ticking ----

    def tick(self, now: datetime) -> list[AlertEvent]:
        """Advance every session; return the events handed to the dispatcher."""
        if self._closed:
            return []

        events: list[AlertEvent] = []
        for session in list(self._sessions.values()):
            try:
                event = session.scheduler.tick(session.task, now)
            except Exception:
                logger.exception("Scheduler tick failed task=%s", session.task.id)
                continue

            if event is None:
                continue

            events.append(event)
            generation = session.next_generation()
            self._launch(session, self.dispatcher.dispatch(session, event, generation))

        return events

    def _launch(self, session: TaskAlertSession, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=f"alert-task-{session.task.id}")
        session.inflight = task
        task.add_done_callback(self._on_inflight_done)

    @staticmethod
    def _on_inflight_done(task: asyncio.Task[object]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Alert dispatch crashed: %r", exc, exc_info=exc)

    # ---- live toggles ----

    def set_style(self, style: NagStyle, now: datetime) -> None:
        if style == self.dispatcher.style:
            return
        self.dispatcher.style = style
        logger.info("Nag style -> %s", style.value)

        for session in list(self._sessions.values()):
            generation = session.next_generation()
            if session.shows_nag(now):
                self._launch(session, self.dispatcher.refresh(session, generation, now))

    def set_speech_enabled(self, enabled: bool) -> None:
        self.dispatcher.speech_enabled = enabled
        self.dispatcher.speech.set_enabled(enabled)

    def set_notifications_enabled(self, enabled: bool) -> None:
        self.dispatcher.notifications_enabled = enabled

    def shutdown(self) -> None:
        self._closed = True
        sessions, self._sessions = self._sessions, {}
        for session in sessions.values():
            session.cancel()
        self.dispatcher.speech.close()
        logger.info("Alert engine stopped.")


async def run_alert_engine(
        engine: AlertEngine,
        repo: TaskRepo,
        clock: Clock,
        *,
        interval_seconds: float = 60.0,
        stop_event: asyncio.Event | None = None,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds:
    - re-read the task list and reconcile sessions,
    - tick every session (the only place thresholds are evaluated).

    Store mutations between ticks are pushed through sync() by the runner's
    listener, so new tasks get a session immediately.
    """
    sleep_s = max(0.5, float(interval_seconds))

    while stop_event is None or not stop_event.is_set():
        now = clock.now()

        try:
            tasks = repo.list_tasks()
        except Exception:
            logger.exception("list_tasks failed")
        else:
            engine.sync(tasks, now)

        engine.tick(now)

        if stop_event is None:
            await asyncio.sleep(sleep_s)
            continue

        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)
