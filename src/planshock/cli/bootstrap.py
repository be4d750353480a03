# src/planshock/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/LLM/TTS/notifier/engine).
"""

from __future__ import annotations

import logging

from ..alerts.dispatcher import AlertDispatcher
from ..alerts.engine import AlertEngine
from ..config import get_settings
from ..connectors.notifier import ConsoleNotifier, DesktopNotifier, NullNotifier
from ..core.clock import SystemClock
from ..core.persona import NagStyle
from ..core.ports import NotificationSink, SpeechSynthesizer
from ..core.state import AppState
from ..llm.client import OpenAINagClient
from ..llm.offline import OfflineNagClient
from ..tasks.task_store import TaskStore
from ..tts.player import SoundDevicePlayer
from ..tts.speech_queue import SpeechQueue
from ..tts.synth import NullSynthesizer, OpenAISpeechSynthesizer, XTTSSynthesizer

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_generator(settings):
    try:
        return OpenAINagClient(settings)
    except Exception as e:
        # Fallback for demos / local runs without external services.
        logger.info("LLM unavailable (%s); using offline templates.", e)
        return OfflineNagClient(locale=settings.locale)


def build_synthesizer(settings) -> SpeechSynthesizer:
    backend = settings.tts_backend
    if backend == "off":
        return NullSynthesizer()

    if backend == "xtts":
        xtts = XTTSSynthesizer(settings)
        if xtts.enabled:
            return xtts
        return NullSynthesizer("XTTS is not available (see log).")

    if backend != "openai":
        logger.warning("Unknown TTS backend %r; speech disabled.", backend)
        return NullSynthesizer(f"Unknown TTS backend: {backend}")

    try:
        return OpenAISpeechSynthesizer(settings)
    except Exception as e:
        logger.info("OpenAI TTS unavailable (%s); speech will fail fast.", e)
        return NullSynthesizer(str(e))


def build_notifier(settings) -> NotificationSink:
    if settings.notifier in ("none", "off"):
        return NullNotifier()
    if settings.notifier == "console":
        return ConsoleNotifier()
    desktop = DesktopNotifier()
    if desktop.available:
        return desktop
    return ConsoleNotifier()


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    generator = build_generator(settings)
    synthesizer = build_synthesizer(settings)
    player = SoundDevicePlayer()
    speech = SpeechQueue(synthesizer, player, enabled=settings.speech_enabled)
    notifier = build_notifier(settings)

    style = NagStyle.parse(settings.nag_style)
    dispatcher = AlertDispatcher(
        generator,
        speech,
        notifier,
        style=style,
        locale=settings.locale,
        grace_seconds=settings.initial_event_grace_seconds,
        speech_enabled=settings.speech_enabled,
        notifications_enabled=settings.notifications_enabled,
    )

    state = AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        clock=SystemClock(),
        generator=generator,
        synthesizer=synthesizer,
        player=player,
        speech=speech,
        notifier=notifier,
        engine=AlertEngine(dispatcher),
    )
    logger.info(
        "State ready: generator=%s tts=%s notifier=%s style=%s",
        type(generator).__name__,
        type(synthesizer).__name__,
        type(notifier).__name__,
        style.value,
    )
    return state
