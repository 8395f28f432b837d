# src/pomodoro_store/storage/tasks.py

from __future__ import annotations

import logging
import sqlite3
import uuid

from ..errors import ConstraintViolationError, NotFoundError
from .aggregates import DailyStatsMaintainer
from .models import Clock, Task, iso, utc_date, utc_now
from .pool import transaction

logger = logging.getLogger(__name__)

_TASK_COLUMNS = (
    "id, text, completed, created_at, completed_at, "
    "priority, estimated_pomodoros, actual_pomodoros"
)


def row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=str(row["id"]),
        text=str(row["text"] or ""),
        completed=bool(row["completed"]),
        created_at=str(row["created_at"]),
        completed_at=row["completed_at"],
        priority=int(row["priority"] or 0),
        estimated_pomodoros=int(row["estimated_pomodoros"] or 1),
        actual_pomodoros=int(row["actual_pomodoros"] or 0),
    )


def _clean_text(text: str) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ConstraintViolationError("task text is required")
    return cleaned


class TaskRepo:
    """CRUD over tasks on a borrowed connection."""

    def __init__(self, conn: sqlite3.Connection, *, clock: Clock = utc_now) -> None:
        self._conn = conn
        self._clock = clock

    def count(self) -> int:
        (n,) = self._conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
        return int(n)

    def create(self, text: str) -> Task:
        task = Task(
            id=str(uuid.uuid4()),
            text=_clean_text(text),
            completed=False,
            created_at=iso(self._clock()),
        )
        with transaction(self._conn):
            self._conn.execute(
                f"""
                INSERT INTO tasks ({_TASK_COLUMNS})
                VALUES (?, ?, 0, ?, NULL, ?, ?, ?)
                """,
                (
                    task.id,
                    task.text,
                    task.created_at,
                    task.priority,
                    task.estimated_pomodoros,
                    task.actual_pomodoros,
                ),
            )
        logger.debug("Task created id=%s", task.id)
        return task

    def get(self, task_id: str) -> Task:
        row = self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError("task", task_id)
        return row_to_task(row)

    def exists(self, task_id: str) -> bool:
        row = self._conn.execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return row is not None

    def list(self) -> list[Task]:
        rows = self._conn.execute(
            f"""
            SELECT {_TASK_COLUMNS} FROM tasks
            ORDER BY priority DESC, created_at DESC, id
            """
        ).fetchall()
        return [row_to_task(r) for r in rows]

    def set_completed(self, task_id: str, completed: bool) -> None:
        """
        Mark a task done or reopen it.

        Only a transition to completed stamps completed_at and bumps today's
        tasks_completed; completing an already completed task changes nothing.
        """
        conn = self._conn
        with transaction(conn):
            row = conn.execute("SELECT completed FROM tasks WHERE id = ?", (task_id,)).fetchone()
            if row is None:
                raise NotFoundError("task", task_id)
            was_completed = bool(row["completed"])

            if completed:
                if was_completed:
                    return
                now = self._clock()
                conn.execute(
                    "UPDATE tasks SET completed = 1, completed_at = ? WHERE id = ?",
                    (iso(now), task_id),
                )
                DailyStatsMaintainer(conn, clock=self._clock).bump_task_completed(utc_date(now))
            else:
                conn.execute(
                    "UPDATE tasks SET completed = 0, completed_at = NULL WHERE id = ?",
                    (task_id,),
                )
        logger.debug("Task id=%s completed=%s", task_id, bool(completed))

    def update(self, task_id: str, text: str, priority: int, estimated_pomodoros: int) -> None:
        cleaned = _clean_text(text)
        try:
            priority = int(priority)
            estimated_pomodoros = int(estimated_pomodoros)
        except (TypeError, ValueError):
            raise ConstraintViolationError("priority and estimate must be integers") from None
        if estimated_pomodoros < 1:
            raise ConstraintViolationError("estimated pomodoros must be >= 1")

        with transaction(self._conn):
            cur = self._conn.execute(
                """
                UPDATE tasks
                SET text = ?, priority = ?, estimated_pomodoros = ?
                WHERE id = ?
                """,
                (cleaned, priority, estimated_pomodoros, task_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError("task", task_id)
        logger.debug("Task updated id=%s", task_id)

    def increment_actual(self, task_id: str) -> None:
        self._conn.execute(
            "UPDATE tasks SET actual_pomodoros = COALESCE(actual_pomodoros, 0) + 1 WHERE id = ?",
            (task_id,),
        )

    def delete(self, task_id: str) -> None:
        with transaction(self._conn):
            cur = self._conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            if cur.rowcount == 0:
                raise NotFoundError("task", task_id)
        logger.debug("Task deleted id=%s", task_id)
