# src/planshock/core/clock.py

from __future__ import annotations

from datetime import UTC, datetime


class SystemClock:
    """Wall clock in UTC. The tick period is a setting, not part of the clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)
