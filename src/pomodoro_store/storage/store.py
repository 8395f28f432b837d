# src/pomodoro_store/storage/store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..errors import StorageUnavailableError, translate_sqlite_error
from .aggregates import DailyStatsMaintainer
from .migrations import CURRENT_VERSION, ensure_current
from .models import (
    Clock,
    DailyStat,
    HeatmapPoint,
    PomodoroSession,
    SessionKind,
    Task,
    TaskWithStats,
    utc_now,
)
from .pool import ConnectionPool, read_snapshot
from .reports import ReportReader
from .sessions import SessionRepo
from .tasks import TaskRepo

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


class PomodoroStore:
    """
    Facade over the pooled database.

    Every public method borrows one connection for its duration and builds the
    repositories on it, so a call is one unit of work from the caller's side.
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        pool_size: int = 4,
        pool_timeout: float = 30.0,
        busy_timeout: float = 5.0,
        clock: Clock = utc_now,
    ) -> None:
        self._db_path = Path(db_path)
        self._clock = clock
        self._pool = ConnectionPool(
            self._db_path,
            max_size=pool_size,
            acquire_timeout=pool_timeout,
            busy_timeout=busy_timeout,
        )

    @classmethod
    def open(cls, settings: Settings, *, clock: Clock = utc_now) -> PomodoroStore:
        """
        Create the data directory if needed, migrate the schema and return a ready store.

        Raises StorageUnavailableError or MigrationError; both are fatal for startup.
        """
        db_path = Path(settings.db_path)
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"cannot create data directory {db_path.parent}: {e}"
            ) from e

        store = cls(
            db_path,
            pool_size=settings.pool_size,
            pool_timeout=settings.pool_timeout,
            busy_timeout=settings.busy_timeout,
            clock=clock,
        )
        try:
            store.migrate()
            tasks, sessions = store.counts()
        except BaseException:
            store.close()
            raise
        logger.info(
            "PomodoroStore ready db=%s schema=v%s tasks=%s sessions=%s",
            db_path,
            CURRENT_VERSION,
            tasks,
            sessions,
        )
        return store

    @classmethod
    def open_dir(cls, data_dir: str | Path, *, clock: Clock = utc_now) -> PomodoroStore:
        from ..config import Settings

        return cls.open(Settings.for_data_dir(data_dir), clock=clock)

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    def close(self) -> None:
        self._pool.close()

    def __enter__(self) -> PomodoroStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---- low-level helpers ----

    @contextlib.contextmanager
    def _conn(self, action: str) -> Iterator[sqlite3.Connection]:
        with self._pool.connection() as conn:
            try:
                yield conn
            except sqlite3.Error as e:
                raise translate_sqlite_error(e, action) from e

    def migrate(self) -> int:
        with self._pool.connection() as conn:
            return ensure_current(conn)

    def counts(self) -> tuple[int, int]:
        with self._conn("count rows") as conn:
            (tasks,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            (sessions,) = conn.execute("SELECT COUNT(*) FROM pomodoro_sessions").fetchone()
        return int(tasks), int(sessions)

    # ---- tasks ----

    def add_task(self, text: str) -> Task:
        with self._conn("add task") as conn:
            return TaskRepo(conn, clock=self._clock).create(text)

    def get_task(self, task_id: str) -> Task:
        with self._conn("get task") as conn:
            return TaskRepo(conn, clock=self._clock).get(task_id)

    def get_tasks(self) -> list[Task]:
        with self._conn("list tasks") as conn:
            return TaskRepo(conn, clock=self._clock).list()

    def complete_task(self, task_id: str, completed: bool = True) -> None:
        with self._conn("complete task") as conn:
            TaskRepo(conn, clock=self._clock).set_completed(task_id, completed)

    def update_task(
        self, task_id: str, text: str, priority: int, estimated_pomodoros: int
    ) -> None:
        with self._conn("update task") as conn:
            TaskRepo(conn, clock=self._clock).update(task_id, text, priority, estimated_pomodoros)

    def delete_task(self, task_id: str) -> None:
        with self._conn("delete task") as conn:
            TaskRepo(conn, clock=self._clock).delete(task_id)

    # ---- sessions ----

    def start_session(
        self, task_id: str | None, kind: str | SessionKind, duration_minutes: int
    ) -> str:
        with self._conn("start session") as conn:
            return SessionRepo(conn, clock=self._clock).start(task_id, kind, duration_minutes)

    def complete_session(
        self, session_id: str, was_completed: bool, was_interrupted: bool
    ) -> None:
        with self._conn("complete session") as conn:
            SessionRepo(conn, clock=self._clock).complete(
                session_id, was_completed, was_interrupted
            )

    def get_session(self, session_id: str) -> PomodoroSession:
        with self._conn("get session") as conn:
            return SessionRepo(conn, clock=self._clock).get(session_id)

    def get_task_with_stats(self, task_id: str) -> TaskWithStats:
        with self._conn("get task with stats") as conn, read_snapshot(conn):
            task = TaskRepo(conn, clock=self._clock).get(task_id)
            sessions = SessionRepo(conn, clock=self._clock).by_task(task_id)
        return TaskWithStats(
            task=task,
            pomodoro_sessions=sessions,
            total_time_spent=sum(s.duration_minutes for s in sessions if s.counted),
        )

    # ---- stats / reports ----

    def get_daily_stats(self, limit: int = 30) -> list[DailyStat]:
        with self._conn("daily stats") as conn:
            return ReportReader(conn, clock=self._clock).daily_stats(limit)

    def get_daily_stats_by_date(self, day: str) -> DailyStat:
        with self._conn("daily stats by date") as conn:
            return ReportReader(conn, clock=self._clock).stats_for_date(day)

    def get_focus_heatmap(self, days: int = 365) -> list[HeatmapPoint]:
        with self._conn("focus heatmap") as conn:
            return ReportReader(conn, clock=self._clock).heatmap(days)

    def export_data(self) -> dict[str, Any]:
        with self._conn("export") as conn:
            return ReportReader(conn, clock=self._clock).export_all()

    def rebuild_daily_stats(self) -> int:
        with self._conn("rebuild daily stats") as conn:
            return DailyStatsMaintainer(conn, clock=self._clock).rebuild()
