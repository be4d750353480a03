# src/planshock/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Final

from ..alerts.urgency import UrgencyTier, classify, normalize_deadline, normalize_estimate, sort_tasks
from ..core.ports import TaskSnapshotListener
from .task_models import Task, TaskStats

logger = logging.getLogger(__name__)

_SCHEMA: Final = """
CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    deadline REAL,
    estimated_hours REAL,
    priority TEXT NOT NULL DEFAULT 'safe',
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL,
    completed_at REAL,
    meta TEXT NOT NULL DEFAULT '{}'
)
"""

# Columns added after the first release; older databases get them via ALTER TABLE.
_COLUMNS: Final[tuple[tuple[str, str], ...]] = (
    ("name", "TEXT NOT NULL DEFAULT ''"),
    ("deadline", "REAL"),
    ("estimated_hours", "REAL"),
    ("priority", "TEXT NOT NULL DEFAULT 'safe'"),
    ("created_at", "REAL NOT NULL DEFAULT 0"),
    ("updated_at", "REAL NOT NULL DEFAULT 0"),
    ("completed_at", "REAL"),
    ("meta", "TEXT NOT NULL DEFAULT '{}'"),
)

# Stress score weights per open task.
_TIER_WEIGHTS: Final[dict[UrgencyTier, int]] = {
    UrgencyTier.CRITICAL: 3,
    UrgencyTier.WARNING: 2,
    UrgencyTier.SAFE: 1,
}


def _to_ts(value: datetime | None) -> float | None:
    return value.timestamp() if value is not None else None


def _encode_meta(meta: dict[str, Any] | None) -> str:
    if not meta:
        return "{}"
    try:
        return json.dumps(meta, ensure_ascii=False)
    except (TypeError, ValueError):
        logger.exception("Task meta is not JSON-serializable; storing {}.")
        return "{}"


def _decode_meta(raw: str | None) -> dict[str, Any]:
    try:
        val = json.loads(raw or "{}")
    except ValueError:
        return {}
    return val if isinstance(val, dict) else {}


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=int(row["id"]),
        name=str(row["name"] or ""),
        deadline=normalize_deadline(row["deadline"]),
        estimated_hours=normalize_estimate(row["estimated_hours"]),
        created_at=normalize_deadline(row["created_at"]) or datetime.fromtimestamp(0, tz=UTC),
        completed_at=normalize_deadline(row["completed_at"]),
        priority=UrgencyTier.from_db(row["priority"]),
        meta=_decode_meta(row["meta"]),
    )


class TaskStore:
    """
    SQLite task store.

    Every call opens a short-lived connection, so the store can be shared by the
    console thread and the engine thread without extra locking.

    The schema only ever grows: missing columns are added in place and legacy
    priority labels (Korean text, "legacy-*") are rewritten to tier values once.

    Mutations notify listeners with a fresh, display-sorted snapshot, on the
    mutating thread.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._listeners: list[TaskSnapshotListener] = []
        self._migrate()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    def close(self) -> None:
        """Connections are per call; closing only detaches listeners."""
        self._listeners.clear()

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _migrate(self) -> None:
        with self._connect() as conn:
            conn.execute(_SCHEMA)

            existing = {row["name"] for row in conn.execute("PRAGMA table_info(tasks)")}
            for column, decl in _COLUMNS:
                if column not in existing:
                    conn.execute(f"ALTER TABLE tasks ADD COLUMN {column} {decl}")
                    logger.info("TaskStore migration: added column %s", column)

            canonical = {t.value for t in UrgencyTier}
            labels = [row["priority"] for row in conn.execute("SELECT DISTINCT priority FROM tasks")]
            for raw in labels:
                if raw in canonical:
                    continue
                tier = UrgencyTier.from_db(raw)
                conn.execute("UPDATE tasks SET priority = ? WHERE priority IS ?", (tier.value, raw))
                logger.info("TaskStore migration: priority %r -> %s", raw, tier.value)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_deadline ON tasks(completed_at, deadline)")

    def _write(self, sql: str, params: tuple[Any, ...], task_id: int) -> None:
        """Run a single-row UPDATE/DELETE; KeyError if the row does not exist."""
        with self._connect() as conn:
            if conn.execute(sql, params).rowcount != 1:
                raise KeyError(task_id)
        self._notify()

    # ---- listeners ----

    def add_listener(self, listener: TaskSnapshotListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TaskSnapshotListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.list_tasks()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Task snapshot listener failed")

    # ---- reads ----

    def count_tasks(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
        return int(n)

    def get_task(self, task_id: int) -> Task | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
        return _row_to_task(row) if row else None

    def list_tasks(self, now: datetime | None = None) -> list[Task]:
        """All tasks in display order (see alerts.urgency.task_sort_key)."""
        with self._connect() as conn:
            tasks = [_row_to_task(r) for r in conn.execute("SELECT * FROM tasks")]
        return sort_tasks(tasks, now or datetime.now(UTC))

    # ---- writes ----

    def add_task(
        self,
        *,
        name: str,
        deadline: datetime | None = None,
        estimated_hours: float | None = None,
        created_at: datetime | None = None,
        meta: dict[str, Any] | None = None,
    ) -> int:
        if not name or not name.strip():
            raise ValueError("name is required")

        now = time.time()
        deadline = normalize_deadline(deadline)
        estimated_hours = normalize_estimate(estimated_hours)
        priority = classify(deadline, estimated_hours, datetime.fromtimestamp(now, tz=UTC))

        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO tasks(name, deadline, estimated_hours, priority, created_at, updated_at, meta)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    name.strip(),
                    _to_ts(deadline),
                    estimated_hours,
                    priority.value,
                    _to_ts(normalize_deadline(created_at)) or now,
                    now,
                    _encode_meta(meta),
                ),
            )
            if cur.lastrowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(cur.lastrowid)

        logger.debug("Task added id=%s deadline=%s estimate=%s", task_id, deadline, estimated_hours)
        self._notify()
        return task_id

    def update_task(
        self,
        task_id: int,
        *,
        name: str,
        deadline: datetime | None,
        estimated_hours: float | None,
    ) -> None:
        if not name or not name.strip():
            raise ValueError("name is required")

        now = time.time()
        deadline = normalize_deadline(deadline)
        estimated_hours = normalize_estimate(estimated_hours)
        priority = classify(deadline, estimated_hours, datetime.fromtimestamp(now, tz=UTC))

        self._write(
            "UPDATE tasks SET name = ?, deadline = ?, estimated_hours = ?, priority = ?, updated_at = ? WHERE id = ?",
            (name.strip(), _to_ts(deadline), estimated_hours, priority.value, now, int(task_id)),
            task_id,
        )

    def set_completed(self, task_id: int, completed: bool, now: datetime | None = None) -> None:
        ts = time.time()
        completed_ts = (_to_ts(now) or ts) if completed else None
        self._write(
            "UPDATE tasks SET completed_at = ?, updated_at = ? WHERE id = ?",
            (completed_ts, ts, int(task_id)),
            task_id,
        )
        logger.debug("Task %s completed=%s", task_id, completed)

    def delete_task(self, task_id: int) -> None:
        self._write("DELETE FROM tasks WHERE id = ?", (int(task_id),), task_id)

    # ---- derived views ----

    def most_urgent(self, now: datetime) -> Task | None:
        """Open task with the earliest deadline."""
        pending = [t for t in self.list_tasks(now) if not t.completed and t.deadline is not None]
        return min(pending, key=lambda t: t.deadline, default=None)  # type: ignore[arg-type, return-value]

    def stats(self, now: datetime) -> TaskStats:
        tasks = self.list_tasks(now)
        active = [t for t in tasks if not t.completed]
        done = [t for t in tasks if t.completed_at is not None]

        today = now.astimezone().date()
        completed_today = sum(1 for t in done if t.completed_at and t.completed_at.astimezone().date() == today)

        counts = {tier: 0 for tier in UrgencyTier}
        for t in active:
            counts[classify(t.deadline, t.estimated_hours, now)] += 1

        weighted = sum(_TIER_WEIGHTS[tier] * n for tier, n in counts.items())
        stress = round(weighted / (max(1, len(active)) * 3) * 100)

        return TaskStats(
            active=len(active),
            completed=len(done),
            completed_today=completed_today,
            tier_counts=counts,
            stress_score=stress,
        )
