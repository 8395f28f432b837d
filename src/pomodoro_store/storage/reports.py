# src/pomodoro_store/storage/reports.py

from __future__ import annotations

import sqlite3
from datetime import timedelta
from typing import Any

from ..errors import ConstraintViolationError
from .models import (
    Clock,
    DailyStat,
    HeatmapPoint,
    heatmap_level,
    iso,
    parse_day,
    utc_date,
    utc_now,
)
from .pool import read_snapshot
from .sessions import SessionRepo
from .tasks import TaskRepo

_STAT_COLUMNS = "date, pomodoros_completed, total_work_time, tasks_completed"


def row_to_stat(row: sqlite3.Row) -> DailyStat:
    return DailyStat(
        date=str(row["date"]),
        pomodoros_completed=int(row["pomodoros_completed"] or 0),
        total_work_time=int(row["total_work_time"] or 0),
        tasks_completed=int(row["tasks_completed"] or 0),
    )


def _non_negative(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConstraintViolationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


class ReportReader:
    """Read-only views over sessions and daily_stats."""

    def __init__(self, conn: sqlite3.Connection, *, clock: Clock = utc_now) -> None:
        self._conn = conn
        self._clock = clock

    def daily_stats(self, limit: int = 30) -> list[DailyStat]:
        limit = _non_negative("limit", limit)
        rows = self._conn.execute(
            f"SELECT {_STAT_COLUMNS} FROM daily_stats ORDER BY date DESC LIMIT ?", (limit,)
        ).fetchall()
        return [row_to_stat(r) for r in rows]

    def stats_for_date(self, day: str) -> DailyStat:
        """Stats for one YYYY-MM-DD day; a day with no activity yields zeros."""
        key = parse_day(day).isoformat()
        row = self._conn.execute(
            f"SELECT {_STAT_COLUMNS} FROM daily_stats WHERE date = ?", (key,)
        ).fetchone()
        if row is None:
            return DailyStat(date=key)
        return row_to_stat(row)

    def heatmap(self, days: int = 365) -> list[HeatmapPoint]:
        """
        Counted work sessions per UTC start date over the trailing window.

        The window starts at (now - days).date(), inclusive. Only dates with at least
        one counted session are returned, oldest first.
        """
        days = _non_negative("days", days)
        start = utc_date(self._clock() - timedelta(days=days))
        rows = self._conn.execute(
            """
            SELECT substr(started_at, 1, 10) AS day, COUNT(*) AS n
            FROM pomodoro_sessions
            WHERE session_type = 'work'
              AND completed_at IS NOT NULL
              AND COALESCE(interrupted, 0) = 0
              AND substr(started_at, 1, 10) >= ?
            GROUP BY day
            ORDER BY day ASC
            """,
            (start,),
        ).fetchall()
        return [
            HeatmapPoint(date=str(r["day"]), count=int(r["n"]), level=heatmap_level(int(r["n"])))
            for r in rows
        ]

    def all_daily_stats(self) -> list[DailyStat]:
        rows = self._conn.execute(
            f"SELECT {_STAT_COLUMNS} FROM daily_stats ORDER BY date DESC"
        ).fetchall()
        return [row_to_stat(r) for r in rows]

    def export_all(self) -> dict[str, Any]:
        conn = self._conn
        with read_snapshot(conn):
            tasks = TaskRepo(conn, clock=self._clock).list()
            sessions = SessionRepo(conn, clock=self._clock).list_all()
            stats = self.all_daily_stats()
        return {
            "tasks": [t.to_dict() for t in tasks],
            "sessions": [s.to_dict() for s in sessions],
            "daily_stats": [s.to_dict() for s in stats],
            "exported_at": iso(self._clock()),
        }
