# tests/conftest.py

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from pomodoro_store.core.commands import CommandExecutor
from pomodoro_store.core.state import AppState
from pomodoro_store.storage.migrations import ensure_current
from pomodoro_store.storage.store import PomodoroStore

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with PomodoroStore.open and AppState.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment and .env.
    """
    return SimpleNamespace(
        app_name="pomodoro-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "pomodoro.db",
        log_dir=tmp_path / "logs",
        pool_size=4,
        pool_timeout=5.0,
        busy_timeout=5.0,
        lock_retries=3,
        lock_retry_delay=0.01,
        workers=4,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(settings: SimpleNamespace, clock: FakeClock) -> Iterator[PomodoroStore]:
    """Real migrated SQLite store under tmp_path; correctness of SQL is what we test."""
    s = PomodoroStore.open(settings, clock=clock)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def conn(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    """Raw migrated connection configured like a pooled one."""
    c = sqlite3.connect(str(tmp_path / "raw.db"), isolation_level=None)
    c.row_factory = sqlite3.Row
    c.execute("PRAGMA foreign_keys=ON")
    ensure_current(c)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture()
def state(settings: SimpleNamespace, store: PomodoroStore) -> Iterator[AppState]:
    executor = CommandExecutor(store, workers=2, retries=3, retry_delay=0.01)
    try:
        yield AppState(settings=settings, store=store, executor=executor)
    finally:
        executor.shutdown()
