# src/planshock/config.py

"""
Settings loaded from PLANSHOCK_* environment variables (a local .env is read first).

No secrets are needed at import time: without an API key the app runs on the
offline template lines.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from dotenv import load_dotenv

ENV_PREFIX = "PLANSHOCK"

_TRUE = frozenset({"1", "true", "yes", "y", "on"})

N = TypeVar("N", int, float)

load_dotenv(override=False)


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _raw(name: str) -> str | None:
    """Env value with blank strings treated as unset."""
    v = os.getenv(name)
    if v is None or not v.strip():
        return None
    return v


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    return next((v for v in map(_raw, names) if v is not None), default)


def _env_bool(name: str, default: bool) -> bool:
    raw = _raw(name)
    return default if raw is None else raw.strip().lower() in _TRUE


def _env_num(name: str, default: N, cast: Callable[[str], N]) -> N:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    return _env_num(name, default, float)


def _env_int(name: str, default: int) -> int:
    return _env_num(name, default, int)


def _env_path(name: str, default: Path) -> Path:
    raw = _raw(name)
    return default if raw is None else Path(raw).expanduser()

@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    locale: str

    # ---- Alerting ----
    nag_style: str
    notifications_enabled: bool
    speech_enabled: bool
    tick_seconds: float
    initial_event_grace_seconds: float
    notifier: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- LLM / OpenAI ----
    openai_api_key: str | None
    openai_base_url: str
    llm_model: str
    llm_temperature: float
    llm_max_tokens: int
    llm_connect_timeout: float
    llm_read_timeout: float

    # ---- TTS ----
    tts_backend: str
    tts_model: str
    tts_default_voice: str
    speaker_wav: str
    xtts_speaker_name: str
    xtts_language: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "planshock")
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        locale = _env(_k("LOCALE"), "en").strip().lower() or "en"

        nag_style = _env(_k("NAG_STYLE"), "drill_sergeant")
        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)
        speech_enabled = _env_bool(_k("SPEECH_ENABLED"), False)
        tick_seconds = max(1.0, _env_float(_k("TICK_SECONDS"), 60.0))
        initial_event_grace_seconds = max(0.0, _env_float(_k("INITIAL_EVENT_GRACE_SECONDS"), 60.0))
        notifier = _env(_k("NOTIFIER"), "desktop").strip().lower()

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1")
        llm_model = _env(_k("LLM_MODEL"), "gpt-4o-mini")
        llm_temperature = _env_float(_k("LLM_TEMPERATURE"), 0.9)
        llm_max_tokens = _env_int(_k("LLM_MAX_TOKENS"), 120)
        llm_connect_timeout = _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0)
        # keep read >= connect as a sane baseline
        llm_read_timeout = max(_env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 25.0), llm_connect_timeout)

        tts_backend = _env(_k("TTS_BACKEND"), "openai").strip().lower()
        tts_model = _env(_k("TTS_MODEL"), "gpt-4o-mini-tts")
        tts_default_voice = _env(_k("TTS_DEFAULT_VOICE"), "alloy")
        speaker_wav = _env(_k("SPEAKER_WAV"), "")
        xtts_speaker_name = _env(_k("XTTS_SPEAKER_NAME"), "Ana Florence")
        xtts_language = _env(_k("XTTS_LANGUAGE"), "en")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/planshock"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            locale=locale,
            nag_style=nag_style,
            notifications_enabled=notifications_enabled,
            speech_enabled=speech_enabled,
            tick_seconds=tick_seconds,
            initial_event_grace_seconds=initial_event_grace_seconds,
            notifier=notifier,
            console_enabled=console_enabled,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            llm_model=llm_model,
            llm_temperature=llm_temperature,
            llm_max_tokens=llm_max_tokens,
            llm_connect_timeout=llm_connect_timeout,
            llm_read_timeout=llm_read_timeout,
            tts_backend=tts_backend,
            tts_model=tts_model,
            tts_default_voice=tts_default_voice,
            speaker_wav=speaker_wav,
            xtts_speaker_name=xtts_speaker_name,
            xtts_language=xtts_language,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
