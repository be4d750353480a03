# src/planshock/tasks/task_api.py

"""
Task operations used by connectors.

Validation lives here (not in the store) so that every front-end gets the same
user-facing ValueError messages.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Final

from ..alerts.urgency import normalize_estimate
from .task_models import Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)

_RELATIVE_RE: Final = re.compile(
    r"^\+?\s*(?:(?P<d>\d+)\s*d)?\s*(?:(?P<h>\d+)\s*h)?\s*(?:(?P<m>\d+)\s*m(?:in)?)?$",
    re.IGNORECASE,
)
_CLEAR_WORDS: Final = frozenset({"", "-", "none", "no", "clear"})


class _Unset:
    pass


UNSET: Final = _Unset()


def parse_deadline(text: str | None, now: datetime) -> datetime | None:
    """
    Parse a user-entered deadline.

    - relative offsets from now: "30m", "2h", "1d4h", "+90m", "1d 2h 15m"
    - ISO-8601: "2026-03-01T18:00" (naive values are local time), "2026-03-01"
    - "-", "none", "" -> no deadline
    """
    s = (text or "").strip()
    if s.lower() in _CLEAR_WORDS:
        return None

    m = _RELATIVE_RE.match(s)
    if m and any(m.group(k) for k in ("d", "h", "m")):
        delta = timedelta(
            days=int(m.group("d") or 0),
            hours=int(m.group("h") or 0),
            minutes=int(m.group("m") or 0),
        )
        return now + delta

    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        raise ValueError(f"Cannot parse deadline: {s!r}. Use e.g. 2h, 1d4h or 2026-03-01T18:00.") from None

    if parsed.tzinfo is None:
        # Naive input is wall-clock time on this machine.
        parsed = parsed.astimezone()
    return parsed.astimezone(now.tzinfo)


def parse_estimate(text: str | None) -> float | None:
    s = (text or "").strip().lower()
    if s in _CLEAR_WORDS:
        return None
    if s.endswith("h"):
        s = s[:-1].strip()
    value = normalize_estimate(s)
    if value is None:
        raise ValueError(f"Estimate must be a non-negative number of hours, got {text!r}.")
    return value


def _clean_name(name: str | None) -> str:
    cleaned = " ".join((name or "").split())
    if not cleaned:
        raise ValueError("Task name must not be empty.")
    return cleaned


def _require(store: TaskStore, task_id: int) -> Task:
    task = store.get_task(task_id)
    if task is None:
        raise ValueError(f"No task with id {task_id}.")
    return task


def create_task(
    store: TaskStore,
    *,
    name: str,
    deadline: datetime | None,
    estimated_hours: float | None,
    now: datetime,
) -> Task:
    if estimated_hours is not None and estimated_hours < 0:
        raise ValueError("Estimate must not be negative.")

    task_id = store.add_task(
        name=_clean_name(name),
        deadline=deadline,
        estimated_hours=estimated_hours,
        created_at=now,
    )
    logger.info("Task created id=%s", task_id)
    return _require(store, task_id)


def edit_task(
    store: TaskStore,
    task_id: int,
    *,
    name: str | _Unset = UNSET,
    deadline: datetime | None | _Unset = UNSET,
    estimated_hours: float | None | _Unset = UNSET,
) -> Task:
    """Update only the given fields; the rest keep their stored values."""
    current = _require(store, task_id)

    new_name = current.name if isinstance(name, _Unset) else _clean_name(name)
    new_deadline = current.deadline if isinstance(deadline, _Unset) else deadline
    new_estimate = current.estimated_hours if isinstance(estimated_hours, _Unset) else estimated_hours
    if new_estimate is not None and new_estimate < 0:
        raise ValueError("Estimate must not be negative.")

    store.update_task(task_id, name=new_name, deadline=new_deadline, estimated_hours=new_estimate)
    logger.info("Task edited id=%s", task_id)
    return _require(store, task_id)


def complete_task(store: TaskStore, task_id: int, now: datetime) -> Task:
    task = _require(store, task_id)
    if task.completed:
        return task
    store.set_completed(task_id, True, now)
    return _require(store, task_id)


def reopen_task(store: TaskStore, task_id: int) -> Task:
    task = _require(store, task_id)
    if not task.completed:
        return task
    store.set_completed(task_id, False)
    return _require(store, task_id)


def remove_task(store: TaskStore, task_id: int) -> None:
    _require(store, task_id)
    store.delete_task(task_id)
    logger.info("Task deleted id=%s", task_id)
