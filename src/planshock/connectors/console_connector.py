# src/planshock/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..alerts.durations import describe_remaining
from ..alerts.thresholds import remaining_ms
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

EXIT_WORDS = frozenset({"/exit", "/quit", "/q"})

_CLEAR_PREV_LINE = "\033[1A\033[2K\r"


def _stamp(text: str) -> str:
    return f"[{datetime.now().astimezone():%H:%M:%S}] {text}"


def _say(text: str) -> None:
    print(_stamp(text), flush=True)


def _prompt(state: AppState) -> str:
    """Prompt carries a countdown for the most urgent open task."""
    now = state.clock.now()
    try:
        task = state.task_store.most_urgent(now)
    except Exception:
        logger.debug("most_urgent lookup failed.", exc_info=True)
        task = None
    if task is None:
        return ">>> "
    locale = str(getattr(state.settings, "locale", "en"))
    return f"[#{task.id} {describe_remaining(remaining_ms(task, now), locale)}] >>> "


def _echo_stamped(prompt: str, line: str) -> None:
    # On a TTY, replace the raw input line with a timestamped copy.
    if not sys.stdout.isatty():
        return
    sys.stdout.write(_CLEAR_PREV_LINE + _stamp(prompt + line) + "\n")
    sys.stdout.flush()


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (style=%s).", state.engine.style.value)
    _say("[CONSOLE] Type a task name to add it, or a slash command. /help lists them, /exit quits.\n")

    while True:
        prompt = _prompt(state)
        try:
            user_input = input(prompt).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue
        _echo_stamped(prompt, user_input)

        if user_input.lower() in EXIT_WORDS:
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            # Bare text is shorthand for adding a task without a deadline.
            user_input = f"/add {user_input}"

        try:
            with state.lock:
                reply = command_registry.handle(state, user_input, emit=_say)
        except Exception:
            logger.exception("Command handler crashed: %s", user_input.split()[0])
            reply = "Internal error while handling a command."

        if reply is not None:
            _say(reply)

    logger.info("Console connector finished.")
