# src/pomodoro_store/storage/__init__.py

from .migrations import CURRENT_VERSION, ensure_current
from .models import DailyStat, HeatmapPoint, PomodoroSession, SessionKind, Task, TaskWithStats
from .pool import ConnectionPool, read_snapshot, transaction
from .store import PomodoroStore

__all__ = [
    "CURRENT_VERSION",
    "ConnectionPool",
    "DailyStat",
    "HeatmapPoint",
    "PomodoroSession",
    "PomodoroStore",
    "SessionKind",
    "Task",
    "TaskWithStats",
    "ensure_current",
    "read_snapshot",
    "transaction",
]
