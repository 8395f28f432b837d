# src/pomodoro_store/storage/aggregates.py

from __future__ import annotations

import logging
import sqlite3

from .models import Clock, iso, utc_now
from .pool import transaction

logger = logging.getLogger(__name__)

# Single-statement upserts: concurrent bumps for the same date serialize in the engine
# and add up, instead of a read-modify-write that could lose an increment.
_BUMP_TASK_SQL = """
INSERT INTO daily_stats (date, pomodoros_completed, total_work_time, tasks_completed, created_at)
VALUES (?, 0, 0, 1, ?)
ON CONFLICT(date) DO UPDATE SET
    tasks_completed = tasks_completed + 1
"""

_BUMP_WORK_SQL = """
INSERT INTO daily_stats (date, pomodoros_completed, total_work_time, tasks_completed, created_at)
VALUES (?, 1, ?, 0, ?)
ON CONFLICT(date) DO UPDATE SET
    pomodoros_completed = pomodoros_completed + 1,
    total_work_time = total_work_time + excluded.total_work_time
"""


class DailyStatsMaintainer:
    """Keeps daily_stats in step with completion events, inside the caller's transaction."""

    def __init__(self, conn: sqlite3.Connection, *, clock: Clock = utc_now) -> None:
        self._conn = conn
        self._clock = clock

    def bump_task_completed(self, day: str) -> None:
        self._conn.execute(_BUMP_TASK_SQL, (day, iso(self._clock())))
        logger.debug("daily_stats %s: tasks_completed += 1", day)

    def bump_work_session(self, day: str, duration_minutes: int) -> None:
        self._conn.execute(_BUMP_WORK_SQL, (day, int(duration_minutes), iso(self._clock())))
        logger.debug(
            "daily_stats %s: pomodoros_completed += 1, total_work_time += %s",
            day,
            duration_minutes,
        )

    def rebuild(self) -> int:
        """
        Recompute every daily_stats row from sessions and tasks.

        Work counters come from counted sessions grouped by completion date; tasks_completed
        from currently completed tasks grouped by completion date. A task completed, reopened
        and completed again was bumped twice but counts once here: there is no completion log.
        Returns the number of rows written.
        """
        conn = self._conn
        now = iso(self._clock())
        with transaction(conn):
            created = {
                str(r["date"]): str(r["created_at"])
                for r in conn.execute("SELECT date, created_at FROM daily_stats")
            }

            days: dict[str, list[int]] = {}
            for r in conn.execute(
                """
                SELECT substr(completed_at, 1, 10) AS day,
                       COUNT(*) AS n,
                       COALESCE(SUM(duration_minutes), 0) AS minutes
                FROM pomodoro_sessions
                WHERE session_type = 'work'
                  AND completed_at IS NOT NULL
                  AND COALESCE(interrupted, 0) = 0
                GROUP BY day
                """
            ):
                counters = days.setdefault(str(r["day"]), [0, 0, 0])
                counters[0] = int(r["n"])
                counters[1] = int(r["minutes"])

            for r in conn.execute(
                """
                SELECT substr(completed_at, 1, 10) AS day, COUNT(*) AS n
                FROM tasks
                WHERE completed = 1 AND completed_at IS NOT NULL
                GROUP BY day
                """
            ):
                days.setdefault(str(r["day"]), [0, 0, 0])[2] = int(r["n"])

            conn.execute("DELETE FROM daily_stats")
            conn.executemany(
                """
                INSERT INTO daily_stats
                    (date, pomodoros_completed, total_work_time, tasks_completed, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (day, n, minutes, tasks, created.get(day, now))
                    for day, (n, minutes, tasks) in sorted(days.items())
                ],
            )

        logger.info("daily_stats rebuilt: %s rows", len(days))
        return len(days)
