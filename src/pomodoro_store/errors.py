# src/pomodoro_store/errors.py

"""
Error taxonomy for the store.

Every failure a caller can act on is a StoreError subclass with a stable code:
- StorageUnavailableError: database file or directory cannot be opened (fatal at startup)
- MigrationError: a schema step failed (fatal at startup)
- NotFoundError: a task/session id does not exist
- ConstraintViolationError: invalid session kind or malformed input
- TransientLockError: lock contention; callers retry a bounded number of times
"""

from __future__ import annotations

import sqlite3


class ErrorCode:
    ERR_STORAGE_UNAVAILABLE = "ERR_STORAGE_UNAVAILABLE"
    ERR_MIGRATION_FAILED = "ERR_MIGRATION_FAILED"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_CONSTRAINT_VIOLATION = "ERR_CONSTRAINT_VIOLATION"
    ERR_TRANSIENT_LOCK = "ERR_TRANSIENT_LOCK"
    ERR_STORAGE = "ERR_STORAGE"


class StoreError(Exception):
    code = ErrorCode.ERR_STORAGE
    retryable = False


class StorageUnavailableError(StoreError):
    code = ErrorCode.ERR_STORAGE_UNAVAILABLE


class MigrationError(StoreError):
    code = ErrorCode.ERR_MIGRATION_FAILED

    def __init__(self, message: str, *, version: int | None = None) -> None:
        super().__init__(message)
        self.version = version


class NotFoundError(StoreError, LookupError):
    code = ErrorCode.ERR_NOT_FOUND

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConstraintViolationError(StoreError, ValueError):
    code = ErrorCode.ERR_CONSTRAINT_VIOLATION


class TransientLockError(StoreError):
    code = ErrorCode.ERR_TRANSIENT_LOCK
    retryable = True


class PoolTimeoutError(TransientLockError):
    pass


_LOCK_PHRASES = ("database is locked", "database table is locked", "database is busy")


def is_lock_error(exc: BaseException) -> bool:
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    msg = str(exc).lower()
    return any(p in msg for p in _LOCK_PHRASES)


def translate_sqlite_error(exc: sqlite3.Error, action: str) -> StoreError:
    """Map a raw sqlite3 error raised while doing `action` onto the store taxonomy."""
    msg = str(exc).strip() or type(exc).__name__
    if is_lock_error(exc):
        return TransientLockError(f"{action}: {msg}")
    if isinstance(exc, sqlite3.IntegrityError):
        return ConstraintViolationError(f"{action}: {msg}")
    return StoreError(f"{action}: {msg}")


def describe_error(exc: BaseException) -> str:
    """Render the descriptive string handed back to the front end."""
    msg = str(exc).strip()
    if isinstance(exc, NotFoundError):
        return f"Not found: {msg}"
    if isinstance(exc, ConstraintViolationError):
        return f"Invalid request: {msg}"
    if isinstance(exc, TransientLockError):
        return f"Database is busy, try again: {msg}"
    if isinstance(exc, MigrationError):
        return f"Database migration failed: {msg}"
    if isinstance(exc, StorageUnavailableError):
        return f"Database unavailable: {msg}"
    if isinstance(exc, StoreError):
        return f"Database error: {msg}"
    return msg or type(exc).__name__
