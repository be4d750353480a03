# src/planshock/connectors/notifier.py

from __future__ import annotations

import logging
import shutil
import subprocess
from datetime import datetime

logger = logging.getLogger(__name__)

APP_TITLE = "PlanShock"


class NullNotifier:
    def notify(self, title: str, body: str) -> None:
        return None


class ConsoleNotifier:
    """Prints alerts into the terminal (headless machines, SSH sessions)."""

    def notify(self, title: str, body: str) -> None:
        ts = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")
        print(f"\n[{ts}] [ALERT] {title or APP_TITLE}: {body}", flush=True)


class DesktopNotifier:
    """
    Desktop notifications through `notify-send` (libnotify).

    The process is spawned and not waited on, so a slow notification daemon never
    stalls the engine loop. Missing binary -> logs once and stays silent.
    """

    def __init__(self, urgency: str = "critical") -> None:
        self._urgency = urgency if urgency in ("low", "normal", "critical") else "normal"
        self._binary = shutil.which("notify-send")
        if self._binary is None:
            logger.warning("notify-send not found; desktop notifications are disabled.")

    @property
    def available(self) -> bool:
        return self._binary is not None

    def notify(self, title: str, body: str) -> None:
        if self._binary is None:
            return
        cmd = [self._binary, f"--urgency={self._urgency}", f"--app-name={APP_TITLE}", title or APP_TITLE]
        if body:
            cmd.append(body)
        try:
            subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            logger.warning("notify-send failed: %s", e)
