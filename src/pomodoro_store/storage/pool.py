# src/pomodoro_store/storage/pool.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
import time
from collections.abc import Iterator
from pathlib import Path

from ..errors import (
    PoolTimeoutError,
    StorageUnavailableError,
    StoreError,
    translate_sqlite_error,
)

logger = logging.getLogger(__name__)


class ConnectionPool:
    """
    Bounded pool of SQLite connections to a single database file.

    - connections are created lazily, up to max_size
    - every connection runs in autocommit mode; transactions are opened explicitly
      with transaction()/read_snapshot()
    - re-entrant per thread: a thread that already holds a connection gets the same
      one back and only the outermost release returns it to the pool
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        max_size: int = 4,
        acquire_timeout: float = 30.0,
        busy_timeout: float = 5.0,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._db_path = Path(db_path)
        self._max_size = int(max_size)
        self._acquire_timeout = float(acquire_timeout)
        self._busy_timeout = float(busy_timeout)

        self._cond = threading.Condition()
        self._idle: list[sqlite3.Connection] = []
        self._created = 0
        self._closed = False
        self._local = threading.local()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def size(self) -> int:
        """Connections opened so far (idle + checked out)."""
        with self._cond:
            return self._created

    # ---- low-level helpers ----

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                str(self._db_path),
                timeout=self._busy_timeout,
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"cannot open database {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            self._configure_conn(conn)
        except sqlite3.Error as e:
            conn.close()
            raise StorageUnavailableError(f"cannot configure database {self._db_path}: {e}") from e
        return conn

    def _configure_conn(self, conn: sqlite3.Connection) -> None:
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute(f"PRAGMA busy_timeout={int(self._busy_timeout * 1000)}")
        # In-memory and some network filesystems refuse WAL; the default journal still works.
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    # ---- public API ----

    def acquire(self) -> sqlite3.Connection:
        held = getattr(self._local, "conn", None)
        if held is not None:
            self._local.depth += 1
            return held

        deadline = time.monotonic() + self._acquire_timeout
        with self._cond:
            while True:
                if self._closed:
                    raise StoreError("connection pool is closed")
                if self._idle:
                    conn = self._idle.pop()
                    break
                if self._created < self._max_size:
                    # Reserve the slot before connecting outside the lock.
                    self._created += 1
                    conn = None
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning(
                        "Pool exhausted: no connection within %.2fs (size=%s)",
                        self._acquire_timeout,
                        self._max_size,
                    )
                    raise PoolTimeoutError(
                        f"no database connection available within {self._acquire_timeout:g}s"
                    )
                self._cond.wait(remaining)

        if conn is None:
            try:
                conn = self._connect()
            except BaseException:
                with self._cond:
                    self._created -= 1
                    self._cond.notify()
                raise
            logger.debug("Opened pooled connection #%s to %s", self.size, self._db_path)

        self._local.conn = conn
        self._local.depth = 1
        return conn

    def release(self, conn: sqlite3.Connection) -> None:
        held = getattr(self._local, "conn", None)
        if held is not conn:
            raise StoreError("releasing a connection not held by this thread")
        self._local.depth -= 1
        if self._local.depth > 0:
            return
        self._local.conn = None

        if conn.in_transaction:
            # A caller leaked an open transaction; never hand that state to the next user.
            logger.warning("Rolling back transaction left open on pooled connection")
            with contextlib.suppress(sqlite3.Error):
                conn.rollback()

        with self._cond:
            if self._closed:
                self._created -= 1
                conn.close()
            else:
                self._idle.append(conn)
            self._cond.notify()

    @contextlib.contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close idle connections; checked-out ones close when released."""
        with self._cond:
            self._closed = True
            idle, self._idle = self._idle, []
            self._created -= len(idle)
            self._cond.notify_all()
        for conn in idle:
            with contextlib.suppress(sqlite3.Error):
                conn.close()
        logger.debug("Connection pool closed db=%s", self._db_path)


@contextlib.contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Write transaction (BEGIN IMMEDIATE).

    If the connection is already inside a transaction the block joins it and the
    outer owner decides commit/rollback.
    """
    if conn.in_transaction:
        yield conn
        return

    try:
        conn.execute("BEGIN IMMEDIATE")
    except sqlite3.Error as e:
        raise translate_sqlite_error(e, "begin transaction") from e

    try:
        yield conn
    except sqlite3.Error as e:
        _rollback(conn)
        raise translate_sqlite_error(e, "transaction") from e
    except BaseException:
        _rollback(conn)
        raise

    try:
        conn.execute("COMMIT")
    except sqlite3.Error as e:
        _rollback(conn)
        raise translate_sqlite_error(e, "commit") from e


@contextlib.contextmanager
def read_snapshot(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Deferred read transaction so several SELECTs see one consistent state."""
    if conn.in_transaction:
        yield conn
        return

    try:
        conn.execute("BEGIN")
    except sqlite3.Error as e:
        raise translate_sqlite_error(e, "begin read") from e

    try:
        yield conn
    except sqlite3.Error as e:
        _rollback(conn)
        raise translate_sqlite_error(e, "read") from e
    except BaseException:
        _rollback(conn)
        raise
    _rollback(conn)


def _rollback(conn: sqlite3.Connection) -> None:
    if not conn.in_transaction:
        return
    try:
        conn.execute("ROLLBACK")
    except sqlite3.Error:
        logger.exception("Rollback failed")
