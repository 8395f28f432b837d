# src/pomodoro_store/storage/migrations.py

"""
Versioned schema migrations.

Each step is a plain function (conn, from_version) and must tolerate being re-applied
over a database where it already partially ran: tables and indexes use IF NOT EXISTS,
and a column add that reports "duplicate column name" counts as done.
Steps are strictly additive; nothing here drops or rewrites user data.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable

from ..errors import MigrationError, StoreError
from .pool import transaction

logger = logging.getLogger(__name__)

Migration = Callable[[sqlite3.Connection, int], None]


def _add_column(conn: sqlite3.Connection, table: str, column: str, decl: str) -> None:
    try:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {decl}")
    except sqlite3.OperationalError as e:
        if "duplicate column name" in str(e).lower():
            logger.debug("migration: column %s.%s already present", table, column)
            return
        raise
    logger.info("migration: added column %s.%s", table, column)


def _v1_tasks(conn: sqlite3.Connection, from_version: int) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            text TEXT NOT NULL,
            completed BOOLEAN NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            completed_at TEXT
        )
        """
    )


def _v2_sessions_and_stats(conn: sqlite3.Connection, from_version: int) -> None:
    _add_column(conn, "tasks", "priority", "INTEGER DEFAULT 0")
    _add_column(conn, "tasks", "estimated_pomodoros", "INTEGER DEFAULT 1")
    _add_column(conn, "tasks", "actual_pomodoros", "INTEGER DEFAULT 0")

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS pomodoro_sessions (
            id TEXT PRIMARY KEY,
            task_id TEXT,
            session_type TEXT NOT NULL
                CHECK(session_type IN ('work', 'short_break', 'long_break')),
            duration_minutes INTEGER NOT NULL,
            started_at TEXT NOT NULL,
            completed_at TEXT,
            interrupted BOOLEAN DEFAULT 0,
            FOREIGN KEY(task_id) REFERENCES tasks(id) ON DELETE SET NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS daily_stats (
            date TEXT PRIMARY KEY,
            pomodoros_completed INTEGER DEFAULT 0,
            total_work_time INTEGER DEFAULT 0,
            tasks_completed INTEGER DEFAULT 0,
            created_at TEXT NOT NULL
        )
        """
    )
    # Kept for parity with released databases; settings now live in a JSON file.
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_task ON pomodoro_sessions(task_id)")
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_sessions_started ON pomodoro_sessions(started_at)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_tasks_order ON tasks(priority DESC, created_at DESC)"
    )


MIGRATIONS: list[tuple[int, Migration]] = [
    (1, _v1_tasks),
    (2, _v2_sessions_and_stats),
]

CURRENT_VERSION = MIGRATIONS[-1][0]


def current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'db_version'"
    ).fetchone()
    if row is None:
        return 0
    (v,) = conn.execute("SELECT MAX(version) FROM db_version").fetchone()
    return int(v or 0)


def ensure_current(conn: sqlite3.Connection) -> int:
    """
    Bring the database to CURRENT_VERSION in one write transaction.

    Returns the version found before migrating. Raises MigrationError on any failure;
    the transaction is rolled back, so a retry starts from the same state.
    """
    step = None
    try:
        with transaction(conn):
            conn.execute("CREATE TABLE IF NOT EXISTS db_version (version INTEGER PRIMARY KEY)")
            found = current_version(conn)
            if found > CURRENT_VERSION:
                raise MigrationError(
                    f"database schema v{found} is newer than supported v{CURRENT_VERSION}",
                    version=found,
                )

            for version, fn in MIGRATIONS:
                if version <= found:
                    continue
                step = version
                fn(conn, found)
                logger.info("migration: applied v%s (%s)", version, fn.__name__.lstrip("_"))

            if found < CURRENT_VERSION:
                conn.execute(
                    "INSERT OR IGNORE INTO db_version (version) VALUES (?)", (CURRENT_VERSION,)
                )
    except MigrationError:
        raise
    except (sqlite3.Error, StoreError) as e:
        where = f"v{step}" if step is not None else "bootstrap"
        raise MigrationError(f"schema migration failed at {where}: {e}", version=step) from e

    if found < CURRENT_VERSION:
        logger.info("Schema migrated v%s -> v%s", found, CURRENT_VERSION)
    return found
