# src/planshock/llm/offline.py

from __future__ import annotations

from datetime import datetime, timedelta

from ..alerts.messages import generate_nag_message
from ..core.persona import NagStyle
from ..tasks.task_models import Task


class OfflineNagClient:
    """
    Offline deterministic client used when no external API is configured.

    Behavior:
    - nag lines -> the persona template for the task's current rule
    - weekly summary -> counts over the last seven days
    """

    def __init__(self, locale: str = "en") -> None:
        self._locale = locale

    async def generate(self, task: Task, style: NagStyle, now: datetime) -> str:
        return generate_nag_message(task, style, now, self._locale)

    async def summarize_week(self, tasks: list[Task], now: datetime) -> str:
        week_ago = now - timedelta(days=7)
        created = sum(1 for t in tasks if t.created_at >= week_ago)
        done = sum(1 for t in tasks if t.completed_at is not None and t.completed_at >= week_ago)
        overdue = sum(1 for t in tasks if not t.completed and t.deadline is not None and t.deadline <= now)

        if created == 0 and done == 0:
            return "Nothing was added or finished this week. That silence says plenty."
        return (
            f"This week you added {created} task(s) and finished {done}. "
            f"{overdue} task(s) are already overdue. "
            "Offline mode: set PLANSHOCK_OPENAI_API_KEY for a sharper review."
        )
