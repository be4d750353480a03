# src/planshock/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any, cast

from ..alerts.durations import describe_remaining
from ..alerts.thresholds import remaining_ms
from ..alerts.urgency import UrgencyTier, task_tier
from ..core.persona import NagStyle
from ..core.state import AppState
from ..llm.client import friendly_llm_error_message
from ..tasks import task_api
from ..tasks.task_models import Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

DELETE_CONFIRM_WINDOW_S = 2.0
SUMMARY_TIMEOUT_S = 60.0

_ON = ("on", "1", "true", "yes")
_OFF = ("off", "0", "false", "no")


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        User input errors (ValueError) become the reply text.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except ValueError as e:
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _on_engine(state: AppState, fn: Callable[..., Any], *args: Any) -> None:
    """Engine mutations must happen on its loop thread when it runs in the background."""
    if state.runner is not None:
        state.runner.call(fn, *args)
    else:
        fn(*args)


def _run_coro(state: AppState, coro: Any, timeout: float) -> Any:
    if state.runner is not None:
        return state.runner.submit(coro).result(timeout=timeout)
    return asyncio.run(coro)


def _parse_id(args: list[str], usage: str) -> int:
    if not args:
        raise ValueError(usage)
    raw = args[0].lstrip("#")
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Not a task id: {args[0]!r}. {usage}") from None


def _parse_toggle(args: list[str]) -> bool | None:
    if not args:
        return None
    arg = args[0].lower()
    if arg in _ON:
        return True
    if arg in _OFF:
        return False
    return None


def _format_task(state: AppState, task: Task) -> list[str]:
    now = state.clock.now()
    locale = str(getattr(state.settings, "locale", "en"))

    box = "[x]" if task.completed else "[ ]"
    tier = task_tier(task, now)
    when = describe_remaining(remaining_ms(task, now), locale)
    est = f", est {task.estimated_hours:g}h" if task.estimated_hours is not None else ""
    head = f"{box} #{task.id} {tier.name:<8} {task.display_name} ({when}{est})"
    lines = [head]

    if task.completed:
        return lines

    session = state.engine.session_for(task.id)
    if session is None or tier == UrgencyTier.SAFE:
        return lines
    if session.loading and session.message is None:
        lines.append("      ... thinking of something mean to say")
    elif session.message:
        lines.append(f"      > {session.message}")
    if session.error:
        lines.append(f"      ! {session.error}")
    return lines


def _split_fields(args: list[str]) -> list[str]:
    return [part.strip() for part in " ".join(args).split("|")]


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    engine = state.engine
    generator = type(state.generator).__name__
    speech = "ON" if engine.dispatcher.speech_enabled else "OFF"
    notify = "ON" if engine.dispatcher.notifications_enabled else "OFF"
    return (
        "Status:\n"
        f"  Style: {engine.style.value}\n"
        f"  Speech: {speech} (backend={getattr(s, 'tts_backend', '?')}, queued={state.speech.pending_count})\n"
        f"  Notifications: {notify} (sink={type(state.notifier).__name__})\n"
        f"  Messages: {generator}\n"
        f"  Tick: every {getattr(s, 'tick_seconds', '?')}s, locale={getattr(s, 'locale', 'en')}\n"
        f"  Tasks: {state.task_store.count_tasks()} (alerting sessions: {len(engine.sessions())})"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list      -> open tasks
    /list all  -> include completed ones
    """
    show_all = bool(args) and args[0].lower() == "all"
    tasks = state.task_store.list_tasks(state.clock.now())
    if not show_all:
        tasks = [t for t in tasks if not t.completed]
    if not tasks:
        return "No tasks. Add one with /add <name> | <deadline> | <estimate hours>."

    lines: list[str] = []
    for task in tasks:
        lines.extend(_format_task(state, task))
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add <name> | <deadline> | <estimate hours>"""
    usage = "Usage: /add <name> | <deadline, e.g. 2h or 2026-03-01T18:00> | <estimate hours>"
    if not args:
        return usage

    fields = _split_fields(args)
    now = state.clock.now()
    name = fields[0]
    deadline = task_api.parse_deadline(fields[1], now) if len(fields) > 1 else None
    estimate = task_api.parse_estimate(fields[2]) if len(fields) > 2 else None

    task = task_api.create_task(
        state.task_store,
        name=name,
        deadline=deadline,
        estimated_hours=estimate,
        now=now,
    )
    return "Added:\n" + "\n".join(_format_task(state, task))


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> name|deadline|estimate <value>"""
    usage = "Usage: /edit <id> name|deadline|estimate <value>"
    task_id = _parse_id(args, usage)
    if len(args) < 2:
        return usage

    field_name = args[1].lower()
    value = " ".join(args[2:])
    now = state.clock.now()

    if field_name == "name":
        task = task_api.edit_task(state.task_store, task_id, name=value)
    elif field_name in ("deadline", "due"):
        task = task_api.edit_task(state.task_store, task_id, deadline=task_api.parse_deadline(value, now))
    elif field_name in ("estimate", "est"):
        task = task_api.edit_task(state.task_store, task_id, estimated_hours=task_api.parse_estimate(value))
    else:
        return usage

    return "Updated:\n" + "\n".join(_format_task(state, task))


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "Usage: /done <id>")
    task = task_api.complete_task(state.task_store, task_id, state.clock.now())
    return f"Done: #{task.id} {task.display_name}. Finally."


def cmd_undo(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "Usage: /undo <id>")
    task = task_api.reopen_task(state.task_store, task_id)
    return f"Reopened: #{task.id} {task.display_name}."


def cmd_del(state: AppState, args: list[str]) -> str:
    """
    /del <id> twice within DELETE_CONFIRM_WINDOW_S seconds.
    The first call only arms the confirmation.
    """
    task_id = _parse_id(args, "Usage: /del <id>")
    task = state.task_store.get_task(task_id)
    if task is None:
        return f"No task with id {task_id}."

    now_m = time.monotonic()
    pending = state.pending_delete
    if pending is not None and pending[0] == task_id and now_m - pending[1] <= DELETE_CONFIRM_WINDOW_S:
        state.pending_delete = None
        task_api.remove_task(state.task_store, task_id)
        return f"Deleted: #{task_id} {task.display_name}."

    state.pending_delete = (task_id, now_m)
    return f"Delete #{task_id} {task.display_name}? Repeat /del {task_id} within {DELETE_CONFIRM_WINDOW_S:g}s to confirm."


def cmd_style(state: AppState, args: list[str]) -> str:
    """
    /style          -> show current and available styles
    /style <name>   -> switch style (display lines refresh, nothing is spoken)
    """
    current = state.engine.style
    if not args:
        names = ", ".join(s.value for s in NagStyle)
        return f"Style: {current.value}. Available: {names}."

    raw = " ".join(args)
    style = NagStyle.lookup(raw)
    if style is None:
        return f"Unknown style: {raw}. Use /style to list styles."

    if style == current:
        return f"Style is already {style.value}."

    _on_engine(state, state.engine.set_style, style, state.clock.now())
    return f"Style -> {style.value}."


def cmd_speech(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /speech          -> show status
    /speech on|off   -> enable/disable spoken alerts
    """
    current = state.engine.dispatcher.speech_enabled
    enabled = _parse_toggle(args)
    if enabled is None:
        return f"Speech is currently {'ON' if current else 'OFF'}. Use /speech on or /speech off."
    if enabled == current:
        return f"Speech is already {'ON' if current else 'OFF'}."

    if enabled and emit is not None:
        emit("[TTS] Enabling speech...")

    # Do NOT duplicate the user-facing message in INFO logs (it prints into console).
    logger.debug("Speech toggle requested enabled=%s", enabled)
    _on_engine(state, state.engine.set_speech_enabled, enabled)
    return "Speech enabled. Alerts will be spoken." if enabled else "Speech disabled. Queued lines dropped."


def cmd_notify(state: AppState, args: list[str]) -> str:
    current = state.engine.dispatcher.notifications_enabled
    enabled = _parse_toggle(args)
    if enabled is None:
        return f"Notifications are currently {'ON' if current else 'OFF'}. Use /notify on or /notify off."
    if enabled == current:
        return f"Notifications are already {'ON' if current else 'OFF'}."

    _on_engine(state, state.engine.set_notifications_enabled, enabled)
    return f"Notifications {'enabled' if enabled else 'disabled'}."


def cmd_stats(state: AppState, args: list[str]) -> str:
    st = state.task_store.stats(state.clock.now())
    c = st.tier_counts
    return (
        "Stats:\n"
        f"  Open: {st.active}  Completed: {st.completed}  Completed today: {st.completed_today}\n"
        f"  CRITICAL: {c[UrgencyTier.CRITICAL]}  WARNING: {c[UrgencyTier.WARNING]}  SAFE: {c[UrgencyTier.SAFE]}\n"
        f"  Stress score: {st.stress_score}/100"
    )


def cmd_summary(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    now = state.clock.now()
    tasks = state.task_store.list_tasks(now)
    if not tasks:
        return "Nothing to summarize yet."

    if emit is not None:
        emit("[LLM] Writing your weekly review...")

    try:
        return _run_coro(state, state.generator.summarize_week(tasks, now), SUMMARY_TIMEOUT_S)
    except Exception as e:
        logger.info("Weekly summary failed: %s", e.__class__.__name__)
        return f"[LLM] {friendly_llm_error_message(e)}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current settings (style/speech/notifications).")
registry.register("list", cmd_list, help_text="List open tasks with their nag lines: /list [all].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <name> | <deadline> | <estimate hours>.")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> name|deadline|estimate <value>.")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("undo", cmd_undo, help_text="Reopen a completed task: /undo <id>.")
registry.register("del", cmd_del, help_text="Delete a task (repeat within 2s to confirm): /del <id>.", aliases=["rm"])
registry.register("style", cmd_style, help_text="Show or switch nag style: /style [name].")
registry.register("speech", cmd_speech, help_text="Enable/disable spoken alerts: /speech on | /speech off.")
registry.register("notify", cmd_notify, help_text="Enable/disable notifications: /notify on | /notify off.")
registry.register("stats", cmd_stats, help_text="Show completion stats and stress score.")
registry.register("summary", cmd_summary, help_text="Weekly AI review of your tasks.")
