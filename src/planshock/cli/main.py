# src/planshock/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the alert engine loop in a background thread,
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading

from ..alerts.runner import start_engine_in_background
from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    runner = state.runner
    if runner is not None:
        runner.stop()
        runner.join(timeout=10.0)
        if runner.thread.is_alive():
            logger.warning("Engine thread did not stop in time.")

    # TaskStore uses short-lived sqlite connections per call; close() only drops listeners.
    try:
        state.task_store.close()
    except Exception:
        logger.debug("Task store close failed.", exc_info=True)

    with contextlib.suppress(Exception):
        state.player.stop()


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(log_dir=settings.data_dir, level=settings.log_level)
    logger.info("Logging to %s", log_file)

    logger.info("Starting %s...", getattr(settings, "app_name", "planshock"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)
    state.runner = start_engine_in_background(state)
    if state.runner is None:
        logger.error("Alert engine failed to start; tasks can be edited but nothing will nag.")

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Some platforms may not support SIGTERM, etc.
        pass

    try:
        if settings.console_enabled:
            # input() needs the default SIGINT behaviour to raise KeyboardInterrupt.
            with contextlib.suppress(ValueError, OSError):
                signal.signal(signal.SIGINT, signal.default_int_handler)
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running the alert engine only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
