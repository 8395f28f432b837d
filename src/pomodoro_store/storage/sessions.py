# src/pomodoro_store/storage/sessions.py

from __future__ import annotations

import logging
import sqlite3
import uuid

from ..errors import ConstraintViolationError, NotFoundError
from .aggregates import DailyStatsMaintainer
from .models import Clock, PomodoroSession, SessionKind, iso, utc_date, utc_now
from .pool import transaction
from .tasks import TaskRepo

logger = logging.getLogger(__name__)

_SESSION_COLUMNS = (
    "id, task_id, session_type, duration_minutes, started_at, completed_at, interrupted"
)


def row_to_session(row: sqlite3.Row) -> PomodoroSession:
    return PomodoroSession(
        id=str(row["id"]),
        task_id=row["task_id"],
        session_type=SessionKind(row["session_type"]),
        duration_minutes=int(row["duration_minutes"]),
        started_at=str(row["started_at"]),
        completed_at=row["completed_at"],
        interrupted=bool(row["interrupted"]),
    )


class SessionRepo:
    """
    Append-only log of pomodoro sessions.

    Completing a counted session (work, finished, not interrupted) also bumps the linked
    task's actual_pomodoros and today's daily_stats in the same transaction.
    """

    def __init__(self, conn: sqlite3.Connection, *, clock: Clock = utc_now) -> None:
        self._conn = conn
        self._clock = clock

    def start(
        self,
        task_id: str | None,
        kind: str | SessionKind,
        duration_minutes: int,
    ) -> str:
        session_kind = SessionKind.parse(kind)
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            raise ConstraintViolationError("duration_minutes must be an integer")
        if duration_minutes < 1:
            raise ConstraintViolationError("duration_minutes must be positive")

        session_id = str(uuid.uuid4())
        conn = self._conn
        with transaction(conn):
            if task_id is not None and not TaskRepo(conn, clock=self._clock).exists(task_id):
                raise NotFoundError("task", task_id)
            conn.execute(
                f"""
                INSERT INTO pomodoro_sessions ({_SESSION_COLUMNS})
                VALUES (?, ?, ?, ?, ?, NULL, 0)
                """,
                (session_id, task_id, session_kind.value, duration_minutes, iso(self._clock())),
            )
        logger.debug(
            "Session started id=%s kind=%s task=%s minutes=%s",
            session_id,
            session_kind.value,
            task_id,
            duration_minutes,
        )
        return session_id

    def complete(self, session_id: str, was_completed: bool, was_interrupted: bool) -> None:
        conn = self._conn
        with transaction(conn):
            row = conn.execute(
                "SELECT completed_at, interrupted FROM pomodoro_sessions WHERE id = ?",
                (session_id,),
            ).fetchone()
            if row is None:
                raise NotFoundError("session", session_id)
            # An interrupted session is final too, even though it has no completed_at.
            if row["completed_at"] is not None or row["interrupted"]:
                raise ConstraintViolationError(f"session already finished: {session_id}")

            now = self._clock()
            conn.execute(
                """
                UPDATE pomodoro_sessions
                SET completed_at = ?, interrupted = ?
                WHERE id = ?
                """,
                (iso(now) if was_completed else None, 1 if was_interrupted else 0, session_id),
            )

            session = self.get(session_id)
            if session.counted:
                if session.task_id is not None:
                    TaskRepo(conn, clock=self._clock).increment_actual(session.task_id)
                DailyStatsMaintainer(conn, clock=self._clock).bump_work_session(
                    utc_date(now), session.duration_minutes
                )
        logger.debug(
            "Session finished id=%s completed=%s interrupted=%s",
            session_id,
            bool(was_completed),
            bool(was_interrupted),
        )

    def get(self, session_id: str) -> PomodoroSession:
        row = self._conn.execute(
            f"SELECT {_SESSION_COLUMNS} FROM pomodoro_sessions WHERE id = ?", (session_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError("session", session_id)
        return row_to_session(row)

    def by_task(self, task_id: str) -> list[PomodoroSession]:
        rows = self._conn.execute(
            f"""
            SELECT {_SESSION_COLUMNS} FROM pomodoro_sessions
            WHERE task_id = ?
            ORDER BY started_at DESC, id
            """,
            (task_id,),
        ).fetchall()
        return [row_to_session(r) for r in rows]

    def list_all(self) -> list[PomodoroSession]:
        rows = self._conn.execute(
            f"""
            SELECT {_SESSION_COLUMNS} FROM pomodoro_sessions
            ORDER BY started_at DESC, id
            """
        ).fetchall()
        return [row_to_session(r) for r in rows]
