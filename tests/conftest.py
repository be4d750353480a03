# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from planshock.alerts.dispatcher import AlertDispatcher
from planshock.alerts.engine import AlertEngine
from planshock.core.persona import NagStyle
from planshock.core.state import AppState
from planshock.tasks.task_store import TaskStore
from planshock.tts.speech_queue import SpeechQueue

from .fakes import FakeGenerator, FakeNotifier, FakePlayer, FakeSynth, FixedClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="planshock-test",
        locale="en",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        nag_style="drill_sergeant",
        tick_seconds=60.0,
        initial_event_grace_seconds=60.0,
        notifications_enabled=True,
        speech_enabled=True,
        tts_backend="off",
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture()
def synth() -> FakeSynth:
    return FakeSynth()


@pytest.fixture()
def speech(synth: FakeSynth, player: FakePlayer) -> SpeechQueue:
    return SpeechQueue(synth, player)


@pytest.fixture()
def dispatcher(generator: FakeGenerator, speech: SpeechQueue, notifier: FakeNotifier) -> AlertDispatcher:
    return AlertDispatcher(generator, speech, notifier, style=NagStyle.DRILL_SERGEANT, grace_seconds=60.0)


@pytest.fixture()
def engine(dispatcher: AlertDispatcher) -> AlertEngine:
    return AlertEngine(dispatcher)


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    clock: FixedClock,
    generator: FakeGenerator,
    synth: FakeSynth,
    player: FakePlayer,
    speech: SpeechQueue,
    notifier: FakeNotifier,
    engine: AlertEngine,
) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep a real SQLite TaskStore here because its correctness is part
    of what we want to test.
    """
    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        clock=clock,
        generator=generator,
        synthesizer=synth,
        player=player,
        speech=speech,
        notifier=notifier,
        engine=engine,
    )
