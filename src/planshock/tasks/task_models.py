# src/planshock/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..alerts.urgency import UrgencyTier

DEFAULT_TASK_NAME = "Untitled task"


@dataclass(slots=True, frozen=True)
class Task:
    id: int
    name: str
    deadline: datetime | None
    estimated_hours: float | None
    created_at: datetime
    completed_at: datetime | None = None

    # Denormalized tier written by the store; the engine always recomputes.
    priority: UrgencyTier = UrgencyTier.SAFE
    meta: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def completed(self) -> bool:
        return self.completed_at is not None

    @property
    def display_name(self) -> str:
        return self.name.strip() or DEFAULT_TASK_NAME

    @property
    def instance_key(self) -> tuple[Any, ...]:
        """
        Identity of a task "instance" for alerting.

        Editing the deadline or the estimate, or toggling completion, produces a new
        key and therefore a fresh scheduler state.
        """
        deadline_ts = self.deadline.timestamp() if self.deadline is not None else None
        return (self.id, deadline_ts, self.estimated_hours, self.completed)


@dataclass(slots=True, frozen=True)
class TaskStats:
    active: int
    completed: int
    completed_today: int
    tier_counts: dict[UrgencyTier, int]
    stress_score: int
