# src/pomodoro_store/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- opens (and migrates) the store under the data directory,
- wires the command executor into AppState,
- writes export snapshots to disk atomically.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..config import Settings, get_settings
from ..core.commands import CommandExecutor
from ..core.state import AppState
from ..storage.models import Clock, utc_now
from ..storage.store import PomodoroStore

logger = logging.getLogger(__name__)


def create_initial_state(*, settings: Settings | None = None, clock: Clock = utc_now) -> AppState:
    """
    Create AppState from the provided settings.

    Raises StorageUnavailableError / MigrationError when the database cannot be brought up;
    callers treat both as fatal.
    """
    if settings is None:
        settings = get_settings()

    store = PomodoroStore.open(settings, clock=clock)
    executor = CommandExecutor(
        store,
        workers=settings.workers,
        retries=settings.lock_retries,
        retry_delay=settings.lock_retry_delay,
    )
    return AppState(settings=settings, store=store, executor=executor)


def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.executor.shutdown(wait=True)
    except Exception:
        logger.exception("Command executor shutdown failed.")
    try:
        state.store.close()
    except Exception:
        logger.exception("Store close failed.")


def default_export_path(settings: Settings, stamp: str) -> Path:
    safe = stamp.replace(":", "").replace("+", "_")
    return settings.data_dir / "exports" / f"pomodoro-export-{safe}.json"


def write_export(data: dict[str, Any], path: str | Path) -> Path:
    """Write an export snapshot as pretty JSON via a temp file + os.replace."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(OSError):
        # Task text is personal data; keep the file private on disk.
        os.chmod(path, 0o600)
    logger.info(
        "Exported %d tasks, %d sessions to %s",
        len(data.get("tasks", [])),
        len(data.get("sessions", [])),
        path,
    )
    return path
