# tests/test_task_repo.py

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from pomodoro_store.errors import ConstraintViolationError, NotFoundError, StoreError
from pomodoro_store.storage.store import PomodoroStore

from .fakes import FakeClock


def test_create_task_defaults(store: PomodoroStore, clock: FakeClock) -> None:
    task = store.add_task("  Write report  ")

    assert task.text == "Write report"
    assert task.completed is False
    assert task.completed_at is None
    assert task.priority == 0
    assert task.estimated_pomodoros == 1
    assert task.actual_pomodoros == 0
    assert task.created_at == clock().isoformat()
    assert store.get_task(task.id) == task


def test_create_rejects_empty_text(store: PomodoroStore) -> None:
    with pytest.raises(ConstraintViolationError):
        store.add_task("   ")
    assert store.get_tasks() == []


def test_list_orders_by_priority_then_newest(store: PomodoroStore, clock: FakeClock) -> None:
    a = store.add_task("a")
    clock.advance(minutes=1)
    b = store.add_task("b")
    clock.advance(minutes=1)
    c = store.add_task("c")
    store.update_task(a.id, "a", priority=5, estimated_pomodoros=1)

    assert [t.id for t in store.get_tasks()] == [a.id, c.id, b.id]


def test_complete_bumps_daily_stat_once(store: PomodoroStore, clock: FakeClock) -> None:
    task = store.add_task("ship it")
    clock.set(datetime(2024, 3, 10, 15, 30, tzinfo=timezone.utc))

    store.complete_task(task.id, True)
    done = store.get_task(task.id)
    assert done.completed is True
    assert done.completed_at == "2024-03-10T15:30:00+00:00"

    # Completing again is a no-op: no second bump, timestamp kept.
    clock.advance(hours=1)
    store.complete_task(task.id, True)
    assert store.get_task(task.id).completed_at == "2024-03-10T15:30:00+00:00"
    assert store.get_daily_stats_by_date("2024-03-10").tasks_completed == 1


def test_uncomplete_clears_timestamp(store: PomodoroStore) -> None:
    task = store.add_task("oops")
    store.complete_task(task.id, True)
    store.complete_task(task.id, False)

    reopened = store.get_task(task.id)
    assert reopened.completed is False
    assert reopened.completed_at is None


def test_update_keeps_completion_and_counters(store: PomodoroStore) -> None:
    task = store.add_task("draft")
    sid = store.start_session(task.id, "work", 25)
    store.complete_session(sid, True, False)
    store.complete_task(task.id, True)

    store.update_task(task.id, "final draft", priority=-2, estimated_pomodoros=4)

    updated = store.get_task(task.id)
    assert updated.text == "final draft"
    assert updated.priority == -2
    assert updated.estimated_pomodoros == 4
    assert updated.completed is True
    assert updated.actual_pomodoros == 1


@pytest.mark.parametrize(
    ("text", "estimate"),
    [("", 1), ("ok", 0), ("ok", -3)],
)
def test_update_rejects_bad_input(store: PomodoroStore, text: str, estimate: int) -> None:
    task = store.add_task("keep me")
    with pytest.raises(ConstraintViolationError):
        store.update_task(task.id, text, 0, estimate)
    assert store.get_task(task.id).text == "keep me"


def test_unknown_ids_raise_not_found(store: PomodoroStore) -> None:
    with pytest.raises(NotFoundError):
        store.get_task("nope")
    with pytest.raises(NotFoundError):
        store.complete_task("nope", True)
    with pytest.raises(NotFoundError):
        store.update_task("nope", "text", 0, 1)
    with pytest.raises(NotFoundError):
        store.delete_task("nope")


def test_delete_removes_task(store: PomodoroStore) -> None:
    task = store.add_task("temp")
    store.delete_task(task.id)
    assert store.get_tasks() == []


def test_failed_stat_update_rolls_back_task_completion(store: PomodoroStore) -> None:
    task = store.add_task("all or nothing")
    with store.pool.connection() as conn:
        conn.execute(
            "CREATE TRIGGER reject_stats BEFORE INSERT ON daily_stats "
            "BEGIN SELECT RAISE(ABORT, 'stats unavailable'); END"
        )

    with pytest.raises(StoreError):
        store.complete_task(task.id, True)

    unchanged = store.get_task(task.id)
    assert unchanged.completed is False
    assert unchanged.completed_at is None
    assert store.get_daily_stats() == []
