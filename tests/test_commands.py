# tests/test_commands.py

from __future__ import annotations

from datetime import timedelta

import pytest

from planshock.cli import commands
from planshock.cli.commands import CommandRegistry, registry
from planshock.core.persona import NagStyle

from .fakes import T0


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a", aliases=["aa"])
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x y") == "h2:x,y"
    assert reg.handle(state, "/AA") == "h2:"
    assert reg.handle(state, "/b", emit=notes.append) == "h3"
    assert called == {"h2": 2, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Empty command" in (reg.handle(state, "/") or "")
    assert "Unknown command" in (reg.handle(state, "/nope") or "")


def test_value_errors_become_replies(state) -> None:
    reg = CommandRegistry()

    def bad(state, args):
        raise ValueError("nope, try again")

    reg.register("bad", bad, "bad")
    assert reg.handle(state, "/bad") == "nope, try again"


def test_help_lists_commands(state) -> None:
    text = registry.handle(state, "/help") or ""
    for name in ("/add", "/list", "/done", "/del", "/style", "/speech", "/summary"):
        assert name in text


def test_add_then_list(state) -> None:
    reply = registry.handle(state, "/add Write report | 2h | 1.5") or ""
    assert reply.startswith("Added:")
    assert "Write report" in reply

    task = state.task_store.list_tasks(T0)[0]
    assert task.deadline == T0 + timedelta(hours=2)
    assert task.estimated_hours == 1.5

    listing = registry.handle(state, "/list") or ""
    assert f"#{task.id}" in listing
    assert "WARNING" in listing


def test_add_with_bad_deadline_reports_error(state) -> None:
    reply = registry.handle(state, "/add Thing | someday") or ""
    assert "Cannot parse deadline" in reply
    assert state.task_store.count_tasks() == 0


def test_done_undo_and_list_all(state) -> None:
    registry.handle(state, "/add Laundry | 1d")
    task_id = state.task_store.list_tasks(T0)[0].id

    assert "Done" in (registry.handle(state, f"/done {task_id}") or "")
    assert "No tasks" in (registry.handle(state, "/list") or "")
    assert "[x]" in (registry.handle(state, "/list all") or "")

    assert "Reopened" in (registry.handle(state, f"/undo #{task_id}") or "")
    assert "[ ]" in (registry.handle(state, "/ls") or "")


def test_edit_fields(state) -> None:
    registry.handle(state, "/add Draft | 3h")
    task_id = state.task_store.list_tasks(T0)[0].id

    registry.handle(state, f"/edit {task_id} name Final draft")
    registry.handle(state, f"/edit {task_id} estimate 2h")
    registry.handle(state, f"/edit {task_id} deadline none")

    task = state.task_store.get_task(task_id)
    assert task.name == "Final draft"
    assert task.estimated_hours == 2.0
    assert task.deadline is None

    assert "Usage" in (registry.handle(state, f"/edit {task_id} colour red") or "")
    assert "Not a task id" in (registry.handle(state, "/edit abc name x") or "")


def test_delete_requires_confirmation(state, monkeypatch: pytest.MonkeyPatch) -> None:
    registry.handle(state, "/add Throwaway")
    task_id = state.task_store.list_tasks(T0)[0].id

    ticks = iter([100.0, 105.0, 105.5])
    monkeypatch.setattr(commands.time, "monotonic", lambda: next(ticks))

    assert "to confirm" in (registry.handle(state, f"/del {task_id}") or "")
    # Second request outside the window only re-arms.
    assert "to confirm" in (registry.handle(state, f"/rm {task_id}") or "")
    assert state.task_store.get_task(task_id) is not None

    assert "Deleted" in (registry.handle(state, f"/del {task_id}") or "")
    assert state.task_store.get_task(task_id) is None
    assert "No task with id" in (registry.handle(state, f"/del {task_id}") or "")


def test_style_show_switch_and_unknown(state) -> None:
    assert "drill_sergeant" in (registry.handle(state, "/style") or "")
    assert "Unknown style" in (registry.handle(state, "/style pirate") or "")

    assert "tsundere" in (registry.handle(state, "/style Tsundere") or "")
    assert state.engine.style == NagStyle.TSUNDERE
    assert "already" in (registry.handle(state, "/style 츤데레형") or "")


def test_speech_and_notify_toggles(state) -> None:
    assert "currently ON" in (registry.handle(state, "/speech") or "")
    assert "disabled" in (registry.handle(state, "/speech off") or "")
    assert state.engine.dispatcher.speech_enabled is False
    assert state.speech.enabled is False

    notes: list[str] = []
    assert "enabled" in (registry.handle(state, "/speech on", emit=notes.append) or "")
    assert notes == ["[TTS] Enabling speech..."]
    assert state.speech.enabled is True

    assert "disabled" in (registry.handle(state, "/notify off") or "")
    assert state.engine.dispatcher.notifications_enabled is False
    assert "already OFF" in (registry.handle(state, "/notify 0") or "")


def test_stats_and_status(state) -> None:
    registry.handle(state, "/add Soon | 1h")
    registry.handle(state, "/add Later")

    stats = registry.handle(state, "/stats") or ""
    assert "Open: 2" in stats
    assert "CRITICAL: 1" in stats
    assert "SAFE: 1" in stats

    status = registry.handle(state, "/status") or ""
    assert "Style: drill_sergeant" in status
    assert "Tasks: 2" in status


def test_summary_uses_generator(state, generator) -> None:
    assert "Nothing to summarize" in (registry.handle(state, "/summary") or "")

    registry.handle(state, "/add Essay | 2d")
    notes: list[str] = []
    assert registry.handle(state, "/summary", emit=notes.append) == "summary of 1 task(s)"
    assert generator.summary_calls == 1
    assert notes == ["[LLM] Writing your weekly review..."]
