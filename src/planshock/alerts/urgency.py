# src/planshock/alerts/urgency.py

"""
Urgency classification.

Tiers are derived, never stored: they are recomputed from
(deadline, estimated_hours, now) every time somebody needs one.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from ..tasks.task_models import Task

HOUR_SECONDS: Final[float] = 3600.0

# Without an effort estimate the tier falls back to fixed windows.
CRITICAL_WINDOW_HOURS: Final[float] = 6.0
WARNING_WINDOW_HOURS: Final[float] = 24.0


class UrgencyTier(StrEnum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def from_db(cls, raw: str | None) -> UrgencyTier:
        """
        Normalize a stored priority label.

        Older databases hold Korean labels, "legacy-*" markers and a few
        mis-decoded variants of the Korean text; all of them map onto the three tiers.
        Anything unrecognized is SAFE.
        """
        if not raw:
            return cls.SAFE
        try:
            return cls(raw)
        except ValueError:
            return _LEGACY_ALIASES.get(raw.strip(), cls.SAFE)


_RANKS: Final[dict[UrgencyTier, int]] = {
    UrgencyTier.SAFE: 0,
    UrgencyTier.WARNING: 1,
    UrgencyTier.CRITICAL: 2,
}

_LEGACY_ALIASES: Final[dict[str, UrgencyTier]] = {
    "충격": UrgencyTier.CRITICAL,
    "경고": UrgencyTier.WARNING,
    "안전": UrgencyTier.SAFE,
    "legacy-critical": UrgencyTier.CRITICAL,
    "legacy-warning": UrgencyTier.WARNING,
    "legacy-safe": UrgencyTier.SAFE,
    "ì¶©ê²©": UrgencyTier.CRITICAL,
    "i¶©e²©": UrgencyTier.CRITICAL,
    "ê²½ê³ ": UrgencyTier.WARNING,
    "e²½e³?": UrgencyTier.WARNING,
    "e²½e³ ": UrgencyTier.WARNING,
}


def classify(deadline: datetime | None, estimated_hours: float | None, now: datetime) -> UrgencyTier:
    """Map (deadline, effort estimate, now) to an urgency tier. Pure and total."""
    if deadline is None:
        return UrgencyTier.SAFE

    remaining_hours = (deadline - now).total_seconds() / HOUR_SECONDS
    if remaining_hours <= 0:
        return UrgencyTier.CRITICAL

    if estimated_hours is not None:
        if remaining_hours < estimated_hours:
            return UrgencyTier.CRITICAL
        if remaining_hours < 2 * estimated_hours:
            return UrgencyTier.WARNING
        return UrgencyTier.SAFE

    if remaining_hours <= CRITICAL_WINDOW_HOURS:
        return UrgencyTier.CRITICAL
    if remaining_hours <= WARNING_WINDOW_HOURS:
        return UrgencyTier.WARNING
    return UrgencyTier.SAFE


def normalize_deadline(value: Any) -> datetime | None:
    """
    Coerce a stored/user deadline into an aware datetime, or None.

    Accepts datetimes (naive ones are taken as UTC), epoch seconds and ISO-8601 strings.
    Invalid values become None instead of raising.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(float(value), tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return None


def normalize_estimate(value: Any) -> float | None:
    """Effort estimate in hours; negative, NaN or non-numeric values become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            value = float(s)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    f = float(value)
    if not math.isfinite(f) or f < 0:
        return None
    return f


def task_tier(task: Task, now: datetime) -> UrgencyTier:
    return classify(task.deadline, task.estimated_hours, now)


def task_sort_key(task: Task, now: datetime) -> tuple[Any, ...]:
    """
    Display ordering: open before completed, CRITICAL -> WARNING -> SAFE,
    earliest deadline first, tasks with a deadline before those without, then name.
    """
    tier = task_tier(task, now)
    deadline_ts = task.deadline.timestamp() if task.deadline is not None else math.inf
    return (
        task.completed,
        -tier.rank,
        task.deadline is None,
        deadline_ts,
        task.name.casefold(),
    )


def sort_tasks(tasks: Iterable[Task], now: datetime) -> list[Task]:
    return sorted(tasks, key=lambda t: task_sort_key(t, now))
