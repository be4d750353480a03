# src/planshock/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "planshock.log"
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Third-party loggers that flood the file log at DEBUG (HTTP wire chatter, model loading).
QUIET_LIBRARIES: tuple[str, ...] = ("httpx", "httpcore", "openai", "TTS", "numba", "matplotlib")


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """'debug' / 'INFO' / '20' -> logging level; unknown names -> default."""
    raw = (name or "").strip().upper()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default


class _AlertConsoleFilter(logging.Filter):
    """
    The console doubles as the nag REPL, so it only shows:
    - planshock records at the console level, except engine/queue DEBUG chatter,
    - anything else (libraries, captured warnings) only at ERROR+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("planshock."):
            return record.levelno >= logging.ERROR
        if name.startswith(("planshock.alerts.", "planshock.tts.")):
            return record.levelno >= logging.INFO
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/planshock",
    level: str | int = "INFO",
    quiet: Iterable[str] = QUIET_LIBRARIES,
) -> Path:
    """
    Console handler on stderr (filtered) plus a rotating DEBUG file in log_dir.

    Idempotent: previously installed root handlers are replaced.
    Returns the log file path.
    """
    console_level = level if isinstance(level, int) else level_from_name(level)

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)-7s %(threadName)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_AlertConsoleFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
