# tests/test_messages.py

from __future__ import annotations

import re
from datetime import timedelta

import pytest

from planshock.alerts.messages import NagPayload, NagRule, determine_nag_rule, generate_nag_message
from planshock.connectors import notifier as notifier_mod
from planshock.connectors.notifier import DesktopNotifier
from planshock.core.persona import NagStyle

from .fakes import T0, make_task


def test_payload_fills_defaults() -> None:
    payload = NagPayload.from_task(make_task(name="   ", deadline=None), T0)
    assert payload.title == "Untitled task"
    assert payload.due == T0 + timedelta(hours=1)
    assert payload.estimated_hours == 1.0


def test_determine_nag_rule() -> None:
    recent = T0 - timedelta(hours=3)
    old = T0 - timedelta(days=3)

    due_soon = NagPayload("t", T0 + timedelta(hours=20), 1.0, old)
    assert determine_nag_rule(due_soon, T0) == NagRule.CRITICAL

    stale = NagPayload("t", T0 + timedelta(days=4), 1.0, old)
    assert determine_nag_rule(stale, T0) == NagRule.PROCRASTINATING

    fresh = NagPayload("t", T0 + timedelta(days=4), 1.0, recent)
    assert determine_nag_rule(fresh, T0) == NagRule.NORMAL


@pytest.mark.parametrize("style", list(NagStyle))
def test_every_style_has_a_line_for_every_rule(style: NagStyle) -> None:
    tasks = [
        make_task(deadline=T0 + timedelta(hours=3)),
        make_task(deadline=T0 - timedelta(hours=3)),
        make_task(deadline=T0 + timedelta(days=5), created_at=T0 - timedelta(days=3)),
        make_task(deadline=T0 + timedelta(days=5), created_at=T0 - timedelta(hours=1)),
    ]
    for task in tasks:
        line = generate_nag_message(task, style, T0)
        assert line.strip()


def test_overdue_line_differs_from_upcoming() -> None:
    upcoming = generate_nag_message(make_task(deadline=T0 + timedelta(hours=3)), NagStyle.DRILL_SERGEANT, T0)
    overdue = generate_nag_message(make_task(deadline=T0 - timedelta(hours=3)), NagStyle.DRILL_SERGEANT, T0)
    assert "due in 3h 0m" in upcoming
    assert "past its deadline" in overdue


def test_single_hour_estimate_is_not_pluralized() -> None:
    one = generate_nag_message(make_task(deadline=T0 + timedelta(hours=3)), NagStyle.DRILL_SERGEANT, T0)
    two = generate_nag_message(
        make_task(deadline=T0 + timedelta(hours=3), estimated_hours=2), NagStyle.DRILL_SERGEANT, T0
    )
    assert "1 hour of work" in one
    assert "1 hours" not in one
    assert "2 hours of work" in two


@pytest.mark.parametrize("style", list(NagStyle))
def test_korean_locale_renders_korean_lines(style: NagStyle) -> None:
    tasks = [
        make_task(name="보고서 작성", deadline=T0 + timedelta(hours=3)),
        make_task(name="보고서 작성", deadline=T0 - timedelta(hours=3)),
        make_task(name="보고서 작성", deadline=T0 + timedelta(days=5), created_at=T0 - timedelta(days=3)),
        make_task(name="보고서 작성", deadline=T0 + timedelta(days=5), created_at=T0 - timedelta(hours=1)),
    ]
    for task in tasks:
        line = generate_nag_message(task, style, T0, "ko")
        assert "보고서 작성" in line
        assert re.search("[A-Za-z]", line) is None, line


def test_korean_line_uses_korean_durations() -> None:
    task = make_task(deadline=T0 + timedelta(hours=2))
    line = generate_nag_message(task, NagStyle.DRILL_SERGEANT, T0, "ko")
    assert "마감까지 2시간 0분 남았다고" in line
    assert "1시간이면" in line


def test_unknown_locale_falls_back_to_english() -> None:
    task = make_task(deadline=T0 + timedelta(hours=3))
    assert generate_nag_message(task, NagStyle.FACT_PROFESSOR, T0, "fr") == generate_nag_message(
        task, NagStyle.FACT_PROFESSOR, T0, "en"
    )


def test_desktop_notifier_without_binary_is_silent(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(notifier_mod.shutil, "which", lambda name: None)
    n = DesktopNotifier()
    assert n.available is False
    n.notify("title", "body")


def test_desktop_notifier_spawns_notify_send(monkeypatch: pytest.MonkeyPatch) -> None:
    spawned: list[list[str]] = []
    monkeypatch.setattr(notifier_mod.shutil, "which", lambda name: "/usr/bin/notify-send")
    monkeypatch.setattr(notifier_mod.subprocess, "Popen", lambda cmd, **kwargs: spawned.append(cmd))

    DesktopNotifier(urgency="loud").notify("Write report", "Move.")
    assert spawned == [
        ["/usr/bin/notify-send", "--urgency=normal", "--app-name=PlanShock", "Write report", "Move."]
    ]
