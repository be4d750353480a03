# src/planshock/alerts/thresholds.py

"""
Per-task threshold scheduler.

A small state machine driven by an external periodic tick. On every tick the
remaining time is re-derived from "now" (nothing is scheduled in advance), compared
with what the previous tick saw, and at most one AlertEvent is emitted:

- tier transitions SAFE -> WARNING and anything -> CRITICAL,
- while CRITICAL: pre-deadline offsets (30m .. 5h), the deadline itself, and
  post-deadline offsets (+1h, +6h, +24h).

Each threshold key fires at most once per SchedulerState. When a single tick jumps
over several offsets (throttled or suspended process) only the first matching one
fires; skipped offsets are not replayed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Final

from ..tasks.task_models import Task
from .durations import ONE_HOUR_MS, ONE_MINUTE_MS
from .urgency import UrgencyTier, classify

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Threshold:
    key: str
    offset_ms: int


PRE_DEADLINE_THRESHOLDS: Final[tuple[Threshold, ...]] = (
    Threshold("pre-30m", 30 * ONE_MINUTE_MS),
    Threshold("pre-1h", ONE_HOUR_MS),
    Threshold("pre-2h", 2 * ONE_HOUR_MS),
    Threshold("pre-3h", 3 * ONE_HOUR_MS),
    Threshold("pre-4h", 4 * ONE_HOUR_MS),
    Threshold("pre-5h", 5 * ONE_HOUR_MS),
)

POST_DEADLINE_THRESHOLDS: Final[tuple[Threshold, ...]] = (
    Threshold("post-1h", ONE_HOUR_MS),
    Threshold("post-6h", 6 * ONE_HOUR_MS),
    Threshold("post-24h", 24 * ONE_HOUR_MS),
)

DEADLINE_HIT_KEY: Final[str] = "deadline-hit"


class AlertKind(StrEnum):
    TIER = "tier"
    THRESHOLD = "threshold"


@dataclass(slots=True, frozen=True)
class AlertEvent:
    task_id: int
    kind: AlertKind
    key: str
    tier: UrgencyTier
    remaining_ms: float | None
    at: datetime


@dataclass(slots=True)
class SchedulerState:
    previous_tier: UrgencyTier
    previous_remaining_ms: float | None
    initial_tier: UrgencyTier
    fired_threshold_keys: set[str] = field(default_factory=set)
    has_skipped_initial_event: bool = False

    @classmethod
    def fresh(cls, task: Task, now: datetime) -> SchedulerState:
        """State for a task instance that just became visible."""
        tier = classify(task.deadline, task.estimated_hours, now)
        return cls(
            previous_tier=tier,
            previous_remaining_ms=remaining_ms(task, now),
            initial_tier=tier,
        )


def remaining_ms(task: Task, now: datetime) -> float | None:
    if task.deadline is None:
        return None
    return (task.deadline - now).total_seconds() * 1000.0


def _is_alerting_transition(prev: UrgencyTier, live: UrgencyTier) -> bool:
    if prev == UrgencyTier.SAFE and live == UrgencyTier.WARNING:
        return True
    return prev != UrgencyTier.CRITICAL and live == UrgencyTier.CRITICAL


class ThresholdScheduler:
    """Owns the SchedulerState of exactly one task instance."""

    def __init__(self, task: Task, now: datetime, *, state: SchedulerState | None = None) -> None:
        self.task = task
        self.state = state if state is not None else SchedulerState.fresh(task, now)

    def tick(self, task: Task, now: datetime) -> AlertEvent | None:
        """Advance the state machine to `now`; return the alert to dispatch, if any."""
        self.task = task
        st = self.state
        diff = remaining_ms(task, now)

        if diff is None:
            st.previous_remaining_ms = None
            return None

        if task.completed:
            st.fired_threshold_keys.clear()
            st.previous_remaining_ms = diff
            return None

        live = classify(task.deadline, task.estimated_hours, now)
        prev = st.previous_tier
        event: AlertEvent | None = None

        if live != prev:
            if _is_alerting_transition(prev, live):
                event = AlertEvent(
                    task_id=task.id,
                    kind=AlertKind.TIER,
                    key=f"tier:{prev.name}->{live.name}",
                    tier=live,
                    remaining_ms=diff,
                    at=now,
                )
                logger.info("Task %s tier %s -> %s", task.id, prev.name, live.name)
            if live != UrgencyTier.CRITICAL:
                st.fired_threshold_keys.clear()
            st.previous_tier = live

        if live != UrgencyTier.CRITICAL or event is not None:
            st.previous_remaining_ms = diff
            return event

        key = self._crossed_threshold(diff, st.previous_remaining_ms)
        st.previous_remaining_ms = diff
        if key is None:
            return None

        logger.info("Task %s crossed threshold %s (remaining_ms=%.0f)", task.id, key, diff)
        return AlertEvent(
            task_id=task.id,
            kind=AlertKind.THRESHOLD,
            key=key,
            tier=live,
            remaining_ms=diff,
            at=now,
        )

    def _crossed_threshold(self, diff: float, prev: float | None) -> str | None:
        """Mark and return the key fired on this tick (CRITICAL only)."""
        fired = self.state.fired_threshold_keys
        hit: str | None = None

        if diff >= 0:
            for th in PRE_DEADLINE_THRESHOLDS:
                prev_above = prev is None or prev > th.offset_ms
                if prev_above and diff <= th.offset_ms and th.key not in fired:
                    fired.add(th.key)
                    hit = th.key
                    break

            # Only a tick landing exactly on the deadline sees diff == 0.
            prev_positive = prev is None or prev > 0
            if prev_positive and diff <= 0 and DEADLINE_HIT_KEY not in fired:
                fired.add(DEADLINE_HIT_KEY)
                hit = DEADLINE_HIT_KEY
            return hit

        elapsed = -diff
        prev_elapsed = 0.0 if prev is None else max(0.0, -prev)
        for th in POST_DEADLINE_THRESHOLDS:
            if prev_elapsed < th.offset_ms <= elapsed and th.key not in fired:
                fired.add(th.key)
                return th.key
        return None
