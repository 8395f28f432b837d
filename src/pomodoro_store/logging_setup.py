# src/pomodoro_store/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "pomodoro.log"

_FILE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(threadName)s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Console thresholds for loggers that talk on every store call. The file keeps them all.
_CHATTY_LOGGERS: dict[str, int] = {
    "pomodoro_store.storage.pool": logging.WARNING,
}

_APP_PREFIX = "pomodoro_store."


class _ConsoleNoiseFilter(logging.Filter):
    """
    Decides what reaches the interactive console.

    The pool logs a line per checkout from every command worker thread, which would bury the
    slash-command output, so it is held back until WARNING. Captured ``warnings.warn`` calls
    (``py.warnings``) and anything not under ``pomodoro_store`` only get through at ERROR.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        floor = _CHATTY_LOGGERS.get(record.name)
        if floor is not None:
            return record.levelno >= floor
        if record.name.startswith(_APP_PREFIX):
            return True
        return record.levelno >= logging.ERROR


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
    handler.addFilter(_ConsoleNoiseFilter())
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(str(path), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(
    *,
    log_dir: str | Path,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route logs to stderr (filtered) and to ``<log_dir>/pomodoro.log`` (everything).

    Replaces whatever handlers the root logger had, so calling it twice does not double
    the output. Returns the log file path.
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for old in list(root.handlers):
        root.removeHandler(old)

    root.addHandler(_console_handler(console_level))
    root.addHandler(_file_handler(log_file, file_level))
    logging.captureWarnings(True)
    return log_file


def level_from_name(name: str, default: int = logging.INFO) -> int:
    """``"debug"`` -> ``logging.DEBUG``; blank or unknown names give ``default``."""
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default
