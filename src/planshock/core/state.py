# src/planshock/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..alerts.engine import AlertEngine
    from ..alerts.runner import EngineBackgroundRunner
    from ..tasks.task_store import TaskStore
    from ..tts.speech_queue import SpeechQueue
    from .ports import AudioPlayer, Clock, NotificationSink, SpeechSynthesizer


@dataclass
class AppState:
    """Everything the connectors and commands need, wired once by cli.bootstrap."""

    settings: Any

    task_store: TaskStore
    clock: Clock
    generator: Any  # MessageGenerator + WeeklySummarizer
    synthesizer: SpeechSynthesizer
    player: AudioPlayer
    speech: SpeechQueue
    notifier: NotificationSink
    engine: AlertEngine

    runner: EngineBackgroundRunner | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)

    # /del confirmation: (task_id, monotonic time of the first request)
    pending_delete: tuple[int, float] | None = None
