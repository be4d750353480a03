# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Put them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "PLANSHOCK_APP_NAME": "App display name (default: planshock).",
    "PLANSHOCK_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    "PLANSHOCK_LOCALE": "Language for durations and generated lines: en | ko (default: en).",
    # Alerting
    "PLANSHOCK_NAG_STYLE": (
        "Initial nag style: drill_sergeant | sarcastic_friend | fact_professor | "
        "cute_but_blunt | tsundere (default: drill_sergeant)."
    ),
    "PLANSHOCK_NOTIFICATIONS_ENABLED": "Send notifications on alerts (true/false, default: true).",
    "PLANSHOCK_SPEECH_ENABLED": "Speak alerts aloud (true/false, default: false).",
    "PLANSHOCK_NOTIFIER": "Notification sink: desktop (notify-send) | console | none (default: desktop).",
    "PLANSHOCK_TICK_SECONDS": "Engine tick period in seconds (default: 60).",
    "PLANSHOCK_INITIAL_EVENT_GRACE_SECONDS": (
        "A task created this recently, already urgent, does not alert on its first event (default: 60)."
    ),
    # Connectors
    "PLANSHOCK_CONSOLE_ENABLED": "Enable the console REPL (true/false, default: true).",
    # LLM / OpenAI
    "PLANSHOCK_OPENAI_API_KEY": "OpenAI API key (plain OPENAI_API_KEY also works). Without it: offline templates.",
    "PLANSHOCK_OPENAI_BASE_URL": "OpenAI-compatible base URL (default: https://api.openai.com/v1).",
    "PLANSHOCK_LLM_MODEL": "Chat model for nag lines and weekly summaries (default: gpt-4o-mini).",
    "PLANSHOCK_LLM_TEMPERATURE": "Sampling temperature for nag lines (default: 0.9).",
    "PLANSHOCK_LLM_MAX_TOKENS": "Max tokens per nag line (default: 120).",
    "PLANSHOCK_LLM_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "PLANSHOCK_LLM_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 25).",
    # TTS
    "PLANSHOCK_TTS_BACKEND": "openai | xtts | off (default: openai). xtts needs the 'xtts' extra.",
    "PLANSHOCK_TTS_MODEL": "OpenAI speech model (default: gpt-4o-mini-tts).",
    "PLANSHOCK_TTS_DEFAULT_VOICE": "Voice used when the style voice fails (default: alloy).",
    "PLANSHOCK_SPEAKER_WAV": "XTTS: optional reference speaker WAV path.",
    "PLANSHOCK_XTTS_SPEAKER_NAME": "XTTS built-in speaker name fallback (default: Ana Florence).",
    "PLANSHOCK_XTTS_LANGUAGE": "XTTS language (default: en).",
    # Paths (gitignored)
    "PLANSHOCK_DATA_DIR": "Local data directory, also holds planshock.log (default: .local/planshock).",
    "PLANSHOCK_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
}
