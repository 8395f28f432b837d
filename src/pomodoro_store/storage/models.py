# src/pomodoro_store/storage/models.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any

from ..errors import ConstraintViolationError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso(ts: datetime) -> str:
    """ISO-8601 with offset; naive datetimes are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()


def utc_date(ts: datetime) -> str:
    return iso(ts)[:10]


def parse_day(raw: str) -> date:
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError:
        raise ConstraintViolationError(f"date must be YYYY-MM-DD, got {raw!r}") from None


class SessionKind(StrEnum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @classmethod
    def parse(cls, raw: str | SessionKind) -> SessionKind:
        try:
            return cls(str(raw))
        except ValueError:
            allowed = ", ".join(k.value for k in cls)
            raise ConstraintViolationError(
                f"invalid session type {raw!r} (expected one of: {allowed})"
            ) from None


@dataclass(slots=True)
class Task:
    id: str
    text: str
    completed: bool
    created_at: str
    completed_at: str | None = None
    priority: int = 0
    estimated_pomodoros: int = 1
    actual_pomodoros: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class PomodoroSession:
    id: str
    task_id: str | None
    session_type: SessionKind
    duration_minutes: int
    started_at: str
    completed_at: str | None = None
    interrupted: bool = False

    @property
    def counted(self) -> bool:
        """A finished, uninterrupted work session."""
        return (
            self.session_type is SessionKind.WORK
            and self.completed_at is not None
            and not self.interrupted
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["session_type"] = self.session_type.value
        return d


@dataclass(slots=True)
class DailyStat:
    date: str
    pomodoros_completed: int = 0
    total_work_time: int = 0
    tasks_completed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class HeatmapPoint:
    date: str
    count: int
    level: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class TaskWithStats:
    task: Task
    pomodoro_sessions: list[PomodoroSession] = field(default_factory=list)
    total_time_spent: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "task": self.task.to_dict(),
            "pomodoro_sessions": [s.to_dict() for s in self.pomodoro_sessions],
            "total_time_spent": self.total_time_spent,
        }


def heatmap_level(count: int) -> int:
    if count <= 0:
        return 0
    if count <= 2:
        return 1
    if count <= 5:
        return 2
    if count <= 9:
        return 3
    return 4
