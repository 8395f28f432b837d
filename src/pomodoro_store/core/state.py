# src/pomodoro_store/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..config import Settings
from ..storage.store import PomodoroStore
from .commands import CommandExecutor, CommandResult


@dataclass
class AppState:
    """Everything a front end needs: settings, the open store and the command executor."""

    settings: Settings
    store: PomodoroStore
    executor: CommandExecutor

    # Session started from this front end and not finished yet.
    active_session_id: str | None = None

    def run(self, name: str, **params: Any) -> CommandResult:
        return self.executor.run(name, **params)
