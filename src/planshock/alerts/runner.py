# src/planshock/alerts/runner.py

from __future__ import annotations

import asyncio
import concurrent.futures
import contextlib
import logging
import threading
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from .engine import run_alert_engine

if TYPE_CHECKING:
    from ..core.state import AppState
    from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class EngineBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def call(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule fn(*args) on the engine loop (safe from any thread)."""
        try:
            self.loop.call_soon_threadsafe(fn, *args)
        except RuntimeError:
            logger.debug("Engine loop is closed; dropping call to %r.", fn)

    def submit(self, coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future[T]:
        """Run a coroutine on the engine loop; the caller blocks on .result() if it wants to."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal engine stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


async def _run_engine(state: AppState, stop_event: asyncio.Event) -> None:
    engine = state.engine
    loop = asyncio.get_running_loop()

    def on_snapshot(tasks: list[Task]) -> None:
        # Store listeners fire on the mutating (console) thread.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(engine.sync, tasks, state.clock.now())

    state.task_store.add_listener(on_snapshot)
    logger.info("Alert engine started (tick=%ss).", state.settings.tick_seconds)

    try:
        await run_alert_engine(
            engine,
            state.task_store,
            state.clock,
            interval_seconds=float(state.settings.tick_seconds),
            stop_event=stop_event,
        )
    finally:
        state.task_store.remove_listener(on_snapshot)
        engine.shutdown()

        closers = [getattr(state.generator, "aclose", None), getattr(state.synthesizer, "aclose", None)]
        for aclose in closers:
            if aclose is None:
                continue
            try:
                await aclose()
            except Exception:
                logger.debug("Client close failed.", exc_info=True)


def _thread_main(state: AppState, loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event) -> None:
    asyncio.set_event_loop(loop)
    try:
        loop.run_until_complete(_run_engine(state, stop_event))
    except Exception:
        logger.exception("Alert engine loop crashed.")
    finally:
        with contextlib.suppress(RuntimeError):
            loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


def start_engine_in_background(state: AppState) -> EngineBackgroundRunner | None:
    """
    Run the alert engine on its own event loop in a daemon thread.

    The console REPL blocks on input() in the main thread; the engine, LLM and TTS
    clients are async. The loop is created here so the runner is usable as soon as
    this returns, before the thread has even started ticking.
    """
    loop = asyncio.new_event_loop()
    stop_event = asyncio.Event()

    thread = threading.Thread(
        target=_thread_main,
        args=(state, loop, stop_event),
        name="planshock-engine",
        daemon=True,
    )
    try:
        thread.start()
    except RuntimeError:
        logger.exception("Could not start the alert engine thread.")
        loop.close()
        return None

    logger.info("Alert engine background thread started.")
    return EngineBackgroundRunner(thread=thread, loop=loop, stop_event=stop_event)
