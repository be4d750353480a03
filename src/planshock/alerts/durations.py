# src/planshock/alerts/durations.py

from __future__ import annotations

from typing import Final

ONE_MINUTE_MS: Final[int] = 60 * 1000
ONE_HOUR_MS: Final[int] = 60 * ONE_MINUTE_MS
ONE_DAY_MS: Final[int] = 24 * ONE_HOUR_MS

_UNITS: Final[dict[str, tuple[str, str, str]]] = {
    "en": ("d", "h", "m"),
    "ko": ("일", "시간", "분"),
}


def format_duration(ms: float, locale: str = "en") -> str:
    """
    Render a millisecond delta as "Nd Nh Nm" (days and hours only when non-zero,
    hours always shown once days are). Negative deltas get a leading "-".
    """
    day_u, hour_u, min_u = _UNITS.get(locale, _UNITS["en"])
    negative = ms < 0
    total = abs(int(ms))

    days = total // ONE_DAY_MS
    hours = (total % ONE_DAY_MS) // ONE_HOUR_MS
    minutes = (total % ONE_HOUR_MS) // ONE_MINUTE_MS

    parts: list[str] = []
    if days:
        parts.append(f"{days}{day_u}")
    if hours or days:
        parts.append(f"{hours}{hour_u}")
    parts.append(f"{minutes}{min_u}")

    text = " ".join(parts)
    return f"-{text}" if negative else text


def describe_remaining(diff_ms: float | None, locale: str = "en") -> str:
    """Inline countdown text shown next to a task."""
    if diff_ms is None:
        return "기한 없음" if locale == "ko" else "no deadline"
    if diff_ms <= 0:
        late = format_duration(abs(diff_ms), locale)
        return f"마감 지남 ({late} 지각)" if locale == "ko" else f"overdue by {late}"
    return format_duration(diff_ms, locale)
