# tests/test_reports.py

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from pomodoro_store.errors import ConstraintViolationError
from pomodoro_store.storage.models import heatmap_level
from pomodoro_store.storage.store import PomodoroStore

from .fakes import FakeClock


def _work(store: PomodoroStore, clock: FakeClock, when: datetime, *, counted: bool = True) -> str:
    clock.set(when)
    sid = store.start_session(None, "work", 25)
    store.complete_session(sid, True, not counted)
    return sid


@pytest.mark.parametrize(
    ("count", "level"),
    [(0, 0), (1, 1), (2, 1), (3, 2), (5, 2), (6, 3), (9, 3), (10, 4), (42, 4)],
)
def test_heatmap_level_buckets(count: int, level: int) -> None:
    assert heatmap_level(count) == level


def test_stats_for_unknown_date_is_zero(store: PomodoroStore) -> None:
    stat = store.get_daily_stats_by_date("2099-01-01")
    assert stat.to_dict() == {
        "date": "2099-01-01",
        "pomodoros_completed": 0,
        "total_work_time": 0,
        "tasks_completed": 0,
    }


@pytest.mark.parametrize("bad", ["yesterday", "2024-13-01", "2024/01/01", ""])
def test_stats_for_malformed_date(store: PomodoroStore, bad: str) -> None:
    with pytest.raises(ConstraintViolationError):
        store.get_daily_stats_by_date(bad)


def test_daily_stats_newest_first_with_limit(store: PomodoroStore, clock: FakeClock) -> None:
    for day in (1, 2, 3):
        _work(store, clock, datetime(2024, 4, day, 10, tzinfo=timezone.utc))

    assert [s.date for s in store.get_daily_stats()] == ["2024-04-03", "2024-04-02", "2024-04-01"]
    assert [s.date for s in store.get_daily_stats(limit=2)] == ["2024-04-03", "2024-04-02"]
    assert store.get_daily_stats(limit=0) == []


def test_heatmap_window_and_levels(store: PomodoroStore, clock: FakeClock) -> None:
    _work(store, clock, datetime(2024, 1, 1, 12, tzinfo=timezone.utc))  # outside window
    for _ in range(3):
        _work(store, clock, datetime(2024, 1, 20, 12, tzinfo=timezone.utc))
    _work(store, clock, datetime(2024, 1, 25, 12, tzinfo=timezone.utc), counted=False)
    _work(store, clock, datetime(2024, 1, 30, 12, tzinfo=timezone.utc))

    clock.set(datetime(2024, 1, 31, 6, tzinfo=timezone.utc))
    heat = store.get_focus_heatmap(11)

    # Window starts at 2024-01-20 (inclusive); the interrupted day is omitted.
    assert [(p.date, p.count, p.level) for p in heat] == [
        ("2024-01-20", 3, 2),
        ("2024-01-30", 1, 1),
    ]


def test_heatmap_rejects_negative_days(store: PomodoroStore) -> None:
    with pytest.raises(ConstraintViolationError):
        store.get_focus_heatmap(-1)


def test_export_contains_everything(store: PomodoroStore, clock: FakeClock) -> None:
    task = store.add_task("exported")
    sid = store.start_session(task.id, "work", 25)
    store.complete_session(sid, True, False)
    store.start_session(None, "long_break", 15)

    data = store.export_data()

    assert set(data) == {"tasks", "sessions", "daily_stats", "exported_at"}
    assert [t["id"] for t in data["tasks"]] == [task.id]
    assert data["tasks"][0]["actual_pomodoros"] == 1
    assert len(data["sessions"]) == 2
    assert {s["session_type"] for s in data["sessions"]} == {"work", "long_break"}
    assert data["daily_stats"][0]["pomodoros_completed"] == 1
    assert data["exported_at"] == clock().isoformat()
    json.dumps(data)
