# tests/test_task_api.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from planshock.tasks.task_api import (
    complete_task,
    create_task,
    edit_task,
    parse_deadline,
    parse_estimate,
    remove_task,
    reopen_task,
)
from planshock.tasks.task_store import TaskStore

from .fakes import T0


@pytest.mark.parametrize(
    ("text", "delta"),
    [
        ("30m", timedelta(minutes=30)),
        ("2h", timedelta(hours=2)),
        ("1d4h", timedelta(days=1, hours=4)),
        ("+90min", timedelta(minutes=90)),
        ("1d 2h 15m", timedelta(days=1, hours=2, minutes=15)),
    ],
)
def test_parse_deadline_relative(text: str, delta: timedelta) -> None:
    assert parse_deadline(text, T0) == T0 + delta


def test_parse_deadline_iso_with_offset() -> None:
    parsed = parse_deadline("2026-03-02T09:30:00+00:00", T0)
    assert parsed == datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


def test_parse_deadline_naive_iso_is_local_time() -> None:
    parsed = parse_deadline("2026-03-02T09:30", T0)
    assert parsed is not None
    assert parsed.tzinfo is not None
    assert parsed == datetime(2026, 3, 2, 9, 30).astimezone()


@pytest.mark.parametrize("text", ["", "-", "none", "CLEAR", None])
def test_parse_deadline_clear_words(text) -> None:
    assert parse_deadline(text, T0) is None


def test_parse_deadline_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="Cannot parse deadline"):
        parse_deadline("next tuesday-ish", T0)


def test_parse_estimate() -> None:
    assert parse_estimate("2") == 2.0
    assert parse_estimate("1.5h") == 1.5
    assert parse_estimate("-") is None
    with pytest.raises(ValueError):
        parse_estimate("-3")
    with pytest.raises(ValueError):
        parse_estimate("lots")


def test_create_edit_complete_remove(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")

    task = create_task(store, name="  Write   report ", deadline=T0 + timedelta(hours=3), estimated_hours=None, now=T0)
    assert task.name == "Write report"
    assert task.created_at == T0

    edited = edit_task(store, task.id, estimated_hours=2.5)
    assert edited.name == "Write report"
    assert edited.deadline == T0 + timedelta(hours=3)
    assert edited.estimated_hours == 2.5

    edited = edit_task(store, task.id, deadline=None)
    assert edited.deadline is None
    assert edited.estimated_hours == 2.5

    done = complete_task(store, task.id, T0)
    assert done.completed_at == T0
    # Completing twice keeps the first timestamp.
    assert complete_task(store, task.id, T0 + timedelta(hours=1)).completed_at == T0

    assert reopen_task(store, task.id).completed is False

    remove_task(store, task.id)
    assert store.get_task(task.id) is None


def test_validation_errors(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")

    with pytest.raises(ValueError, match="must not be empty"):
        create_task(store, name="   ", deadline=None, estimated_hours=None, now=T0)
    with pytest.raises(ValueError, match="must not be negative"):
        create_task(store, name="x", deadline=None, estimated_hours=-1.0, now=T0)

    with pytest.raises(ValueError, match="No task with id 42"):
        edit_task(store, 42, name="y")
    with pytest.raises(ValueError, match="No task with id 42"):
        complete_task(store, 42, T0)
    with pytest.raises(ValueError, match="No task with id 42"):
        remove_task(store, 42)
