# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from pomodoro_store.config import DB_FILE_NAME, Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "POMODORO_APP_NAME",
        "POMODORO_DATA_DIR",
        "POMODORO_DB_PATH",
        "POMODORO_LOG_DIR",
        "POMODORO_POOL_SIZE",
        "POMODORO_POOL_TIMEOUT",
        "POMODORO_LOCK_RETRIES",
        "POMODORO_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_paths_derive_from_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("POMODORO_DATA_DIR", str(tmp_path / "data"))
    s = Settings.from_env()

    assert s.data_dir == tmp_path / "data"
    assert s.db_path == tmp_path / "data" / DB_FILE_NAME
    assert s.log_dir == tmp_path / "data" / "logs"


def test_xdg_default(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    s = Settings.from_env()
    assert s.data_dir == tmp_path / "pomodoro"


def test_numeric_knobs_and_fallbacks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POMODORO_POOL_SIZE", "8")
    monkeypatch.setenv("POMODORO_POOL_TIMEOUT", "2.5")
    monkeypatch.setenv("POMODORO_LOCK_RETRIES", "not-a-number")
    monkeypatch.setenv("POMODORO_WORKERS", "0")
    s = Settings.from_env()

    assert s.pool_size == 8
    assert s.pool_timeout == 2.5
    assert s.lock_retries == 3
    assert s.workers == 4


def test_for_data_dir_overrides(tmp_path: Path) -> None:
    s = Settings.for_data_dir(tmp_path, pool_size=1)
    assert s.db_path == tmp_path / DB_FILE_NAME
    assert s.pool_size == 1
