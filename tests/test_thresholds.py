# tests/test_thresholds.py

from __future__ import annotations

from datetime import timedelta

from planshock.alerts.thresholds import (
    DEADLINE_HIT_KEY,
    AlertKind,
    SchedulerState,
    ThresholdScheduler,
)
from planshock.alerts.urgency import UrgencyTier

from .fakes import T0, make_task

DEADLINE = T0 + timedelta(hours=12)


def _at(delta: timedelta):
    """Point in time relative to DEADLINE (negative = before)."""
    return DEADLINE + delta


def _keys(scheduler: ThresholdScheduler, task, times) -> list[str | None]:
    out = []
    for now in times:
        ev = scheduler.tick(task, now)
        out.append(ev.key if ev else None)
    return out


def test_fresh_state_seeds_previous_values() -> None:
    task = make_task(deadline=DEADLINE)
    now = _at(-timedelta(hours=3))
    st = SchedulerState.fresh(task, now)
    assert st.previous_tier == UrgencyTier.CRITICAL
    assert st.initial_tier == UrgencyTier.CRITICAL
    assert st.previous_remaining_ms == 3 * 3600 * 1000
    assert st.fired_threshold_keys == set()
    assert st.has_skipped_initial_event is False


def test_pre_30m_fires_once_when_crossed() -> None:
    task = make_task(deadline=DEADLINE)
    sched = ThresholdScheduler(task, _at(-timedelta(minutes=31)))

    ev = sched.tick(task, _at(-timedelta(minutes=29)))
    assert ev is not None
    assert ev.kind == AlertKind.THRESHOLD
    assert ev.key == "pre-30m"
    assert ev.tier == UrgencyTier.CRITICAL

    assert sched.tick(task, _at(-timedelta(minutes=28))) is None
    assert sched.state.fired_threshold_keys == {"pre-30m"}


def test_pre_30m_with_unset_previous() -> None:
    task = make_task(deadline=DEADLINE)
    state = SchedulerState(
        previous_tier=UrgencyTier.CRITICAL,
        previous_remaining_ms=None,
        initial_tier=UrgencyTier.CRITICAL,
    )
    sched = ThresholdScheduler(task, T0, state=state)

    ev = sched.tick(task, _at(-timedelta(minutes=29)))
    assert ev is not None and ev.key == "pre-30m"


def test_post_1h_scenario() -> None:
    task = make_task(deadline=DEADLINE)
    sched = ThresholdScheduler(task, _at(-timedelta(minutes=1)))

    keys = _keys(
        sched,
        task,
        [
            _at(timedelta(seconds=30)),
            _at(timedelta(minutes=59)),
            _at(timedelta(minutes=61)),
            _at(timedelta(minutes=62)),
        ],
    )
    assert keys == [None, None, "post-1h", None]


def test_every_threshold_fires_at_most_once_per_minute_ticks() -> None:
    task = make_task(deadline=DEADLINE)
    start = _at(-timedelta(hours=5, minutes=30))
    sched = ThresholdScheduler(task, start)

    fired: list[str] = []
    for minute in range(1, 31 * 60):
        ev = sched.tick(task, start + timedelta(minutes=minute))
        if ev is not None:
            fired.append(ev.key)

    assert fired == [
        "pre-5h",
        "pre-4h",
        "pre-3h",
        "pre-2h",
        "pre-1h",
        "pre-30m",
        DEADLINE_HIT_KEY,
        "post-1h",
        "post-6h",
        "post-24h",
    ]
    assert len(fired) == len(set(fired))


def test_large_gap_fires_only_first_threshold_and_never_replays() -> None:
    task = make_task(deadline=DEADLINE)
    sched = ThresholdScheduler(task, _at(-timedelta(hours=5, minutes=30)))

    keys = _keys(
        sched,
        task,
        [
            _at(-timedelta(minutes=10)),
            _at(-timedelta(minutes=9)),
            _at(-timedelta(minutes=5)),
        ],
    )
    assert keys == ["pre-30m", None, None]
    assert sched.state.fired_threshold_keys == {"pre-30m"}


def test_gap_across_deadline_fires_first_passed_post_offset() -> None:
    task = make_task(deadline=DEADLINE)
    sched = ThresholdScheduler(task, _at(-timedelta(minutes=10)))

    keys = _keys(
        sched,
        task,
        [
            _at(timedelta(hours=2)),
            _at(timedelta(hours=2, minutes=1)),
            _at(timedelta(hours=6, minutes=1)),
        ],
    )
    assert keys == ["post-1h", None, "post-6h"]
    assert DEADLINE_HIT_KEY not in sched.state.fired_threshold_keys


def test_tick_straddling_deadline_emits_nothing() -> None:
    task = make_task(deadline=DEADLINE)
    sched = ThresholdScheduler(task, _at(-timedelta(seconds=90)))

    assert sched.tick(task, _at(timedelta(seconds=30))) is None
    assert sched.state.fired_threshold_keys == set()

    ev = sched.tick(task, _at(timedelta(hours=1, seconds=30)))
    assert ev is not None and ev.key == "post-1h"


def test_tick_exactly_on_deadline_fires_deadline_hit() -> None:
    task = make_task(deadline=DEADLINE)
    sched = ThresholdScheduler(task, _at(-timedelta(minutes=1)))

    ev = sched.tick(task, DEADLINE)
    assert ev is not None and ev.key == DEADLINE_HIT_KEY
    assert sched.tick(task, _at(timedelta(minutes=1))) is None


def test_tier_transitions_emit_tier_events_one_per_tick() -> None:
    task = make_task(deadline=DEADLINE, estimated_hours=2)
    sched = ThresholdScheduler(task, _at(-timedelta(hours=4, minutes=10)))
    assert sched.state.previous_tier == UrgencyTier.SAFE

    ev = sched.tick(task, _at(-timedelta(hours=3, minutes=50)))
    assert ev is not None
    assert ev.kind == AlertKind.TIER
    assert ev.key == "tier:SAFE->WARNING"
    assert ev.tier == UrgencyTier.WARNING

    ev = sched.tick(task, _at(-timedelta(hours=1, minutes=50)))
    assert ev is not None
    assert ev.key == "tier:WARNING->CRITICAL"

    # pre-2h was crossed on the same tick as the tier change; it is not replayed.
    assert sched.tick(task, _at(-timedelta(hours=1, minutes=40))) is None
    ev = sched.tick(task, _at(-timedelta(minutes=59)))
    assert ev is not None and ev.key == "pre-1h"


def test_completed_task_never_fires_and_clears_memory() -> None:
    task = make_task(deadline=DEADLINE)
    sched = ThresholdScheduler(task, _at(-timedelta(minutes=31)))
    assert sched.tick(task, _at(-timedelta(minutes=29))) is not None

    done = make_task(deadline=DEADLINE, completed_at=_at(-timedelta(minutes=28)))
    assert sched.tick(done, _at(-timedelta(minutes=28))) is None
    assert sched.state.fired_threshold_keys == set()
    assert sched.tick(done, _at(timedelta(minutes=1))) is None
    assert sched.tick(done, _at(timedelta(hours=2))) is None


def test_no_deadline_never_fires() -> None:
    task = make_task(deadline=None)
    sched = ThresholdScheduler(task, T0)
    assert sched.tick(task, T0 + timedelta(days=3)) is None
    assert sched.state.previous_remaining_ms is None


def test_leaving_critical_clears_fired_keys() -> None:
    task = make_task(deadline=DEADLINE)
    sched = ThresholdScheduler(task, _at(-timedelta(minutes=31)))
    assert sched.tick(task, _at(-timedelta(minutes=29))) is not None

    pushed = make_task(deadline=DEADLINE + timedelta(days=3))
    assert sched.tick(pushed, _at(-timedelta(minutes=28))) is None
    assert sched.state.previous_tier == UrgencyTier.SAFE
    assert sched.state.fired_threshold_keys == set()
