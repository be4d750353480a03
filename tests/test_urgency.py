# tests/test_urgency.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from planshock.alerts.urgency import (
    UrgencyTier,
    classify,
    normalize_deadline,
    normalize_estimate,
    sort_tasks,
)

from .fakes import T0, make_task


@pytest.mark.parametrize(
    ("hours_left", "estimate", "expected"),
    [
        (None, None, UrgencyTier.SAFE),
        (-1, None, UrgencyTier.CRITICAL),
        (0, 5, UrgencyTier.CRITICAL),
        (6, None, UrgencyTier.CRITICAL),
        (6.5, None, UrgencyTier.WARNING),
        (24, None, UrgencyTier.WARNING),
        (25, None, UrgencyTier.SAFE),
        (2.5, 3, UrgencyTier.CRITICAL),
        (5, 3, UrgencyTier.WARNING),
        (6, 3, UrgencyTier.SAFE),
        (100, 60, UrgencyTier.WARNING),
    ],
)
def test_classify_table(hours_left, estimate, expected) -> None:
    deadline = None if hours_left is None else T0 + timedelta(hours=hours_left)
    assert classify(deadline, estimate, T0) == expected


def test_classify_is_deterministic_and_monotonic_in_time() -> None:
    deadline = T0 + timedelta(hours=30)
    for estimate in (None, 2.0, 10.0):
        ranks = []
        for minutes in range(0, 31 * 60, 17):
            now = T0 + timedelta(minutes=minutes)
            tier = classify(deadline, estimate, now)
            assert tier == classify(deadline, estimate, now)
            ranks.append(tier.rank)
        assert ranks == sorted(ranks)


def test_tier_ordering() -> None:
    assert UrgencyTier.CRITICAL.rank > UrgencyTier.WARNING.rank > UrgencyTier.SAFE.rank


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("critical", UrgencyTier.CRITICAL),
        ("legacy-warning", UrgencyTier.WARNING),
        ("충격", UrgencyTier.CRITICAL),
        ("경고", UrgencyTier.WARNING),
        ("안전", UrgencyTier.SAFE),
        ("ì¶©ê²©", UrgencyTier.CRITICAL),
        (None, UrgencyTier.SAFE),
        ("???", UrgencyTier.SAFE),
    ],
)
def test_from_db_normalizes_legacy_labels(raw, expected) -> None:
    assert UrgencyTier.from_db(raw) == expected


def test_normalize_deadline() -> None:
    naive = datetime(2026, 3, 1, 12, 0)
    assert normalize_deadline(naive) == T0
    assert normalize_deadline(T0.timestamp()) == T0
    assert normalize_deadline("2026-03-01T12:00:00+00:00") == T0
    assert normalize_deadline("not a date") is None
    assert normalize_deadline(float("nan")) is None
    assert normalize_deadline(True) is None
    assert normalize_deadline("") is None


def test_normalize_estimate() -> None:
    assert normalize_estimate(2) == 2.0
    assert normalize_estimate("1.5") == 1.5
    assert normalize_estimate(-1) is None
    assert normalize_estimate(float("nan")) is None
    assert normalize_estimate("abc") is None
    assert normalize_estimate(None) is None


def test_sort_tasks_display_order() -> None:
    critical = make_task(1, name="b", deadline=T0 + timedelta(hours=2))
    warning_late = make_task(2, name="c", deadline=T0 + timedelta(hours=20))
    warning_early = make_task(3, name="d", deadline=T0 + timedelta(hours=10))
    no_deadline = make_task(4, name="a")
    done = make_task(5, name="e", deadline=T0 + timedelta(hours=1), completed_at=T0)

    ordered = sort_tasks([done, no_deadline, warning_late, critical, warning_early], T0)
    assert [t.id for t in ordered] == [1, 3, 2, 4, 5]


def test_sort_tasks_ties_break_on_name() -> None:
    a = make_task(1, name="beta")
    b = make_task(2, name="Alpha")
    assert [t.id for t in sort_tasks([a, b], datetime.now(UTC))] == [2, 1]
