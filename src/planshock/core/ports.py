# src/planshock/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the alert engine.

The engine depends on Protocols instead of concrete implementations.
This keeps the LLM provider, TTS backend, audio device and notifier swappable and
lets the tests run headless.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task
    from .persona import NagStyle

TaskSnapshotListener = Callable[[list["Task"]], None]


@dataclass(slots=True, frozen=True)
class SpeechAudio:
    """Synthesized clip. `data` is raw little-endian PCM16 mono unless format says otherwise."""

    data: bytes
    format: str = "pcm"
    sample_rate: int = 24000


class Clock(Protocol):
    def now(self) -> datetime: ...


class TaskRepo(Protocol):
    def list_tasks(self) -> list[Task]: ...
    def get_task(self, task_id: int) -> Task | None: ...

    def add_task(
            self,
            *,
            name: str,
            deadline: datetime | None = None,
            estimated_hours: float | None = None,
            created_at: datetime | None = None,
    ) -> int: ...

    def update_task(
            self,
            task_id: int,
            *,
            name: str,
            deadline: datetime | None,
            estimated_hours: float | None,
    ) -> None: ...

    def set_completed(self, task_id: int, completed: bool, now: datetime | None = None) -> None: ...
    def delete_task(self, task_id: int) -> None: ...

    def add_listener(self, listener: TaskSnapshotListener) -> None: ...


class MessageGenerator(Protocol):
    """One nagging sentence for a task snapshot. May raise; callers handle it."""

    async def generate(self, task: Task, style: NagStyle, now: datetime) -> str: ...


class WeeklySummarizer(Protocol):
    async def summarize_week(self, tasks: list[Task], now: datetime) -> str: ...


class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str, style: NagStyle) -> SpeechAudio: ...


class AudioPlayer(Protocol):
    async def play(self, audio: SpeechAudio, *, rate: float, volume: float) -> None: ...
    def stop(self) -> None: ...


class NotificationSink(Protocol):
    """Fire-and-forget. Implementations must not raise."""

    def notify(self, title: str, body: str) -> None: ...
