# tests/test_logging_setup.py

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from pomodoro_store.logging_setup import (
    LOG_FILE_NAME,
    _ConsoleNoiseFilter,
    level_from_name,
    setup_logging,
)


@pytest.fixture()
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        yield
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            if h not in handlers:
                h.close()
        for h in handlers:
            root.addHandler(h)
        root.setLevel(level)
        logging.captureWarnings(False)


def test_setup_logging_writes_file(tmp_path: Path, restore_root_logging: None) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)
    logging.getLogger("pomodoro_store.storage.pool").debug("checkout detail")

    for h in logging.getLogger().handlers:
        h.flush()
    assert log_file == tmp_path / "logs" / LOG_FILE_NAME
    assert "checkout detail" in log_file.read_text("utf-8")


def test_level_from_name() -> None:
    assert level_from_name("debug") == logging.DEBUG
    assert level_from_name("WARNING") == logging.WARNING
    assert level_from_name("chatty", logging.ERROR) == logging.ERROR
    assert level_from_name("") == logging.INFO


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("pomodoro_store.storage.sessions", logging.DEBUG, True),
        ("pomodoro_store.storage.pool", logging.DEBUG, False),
        ("pomodoro_store.storage.pool", logging.WARNING, True),
        ("py.warnings", logging.WARNING, False),
        ("urllib3", logging.WARNING, False),
        ("urllib3", logging.ERROR, True),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown
