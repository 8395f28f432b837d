# tests/test_commands.py

from __future__ import annotations

import pytest

from pomodoro_store.core.commands import CommandRegistry, registry, with_lock_retry
from pomodoro_store.core.state import AppState
from pomodoro_store.errors import ErrorCode, NotFoundError, TransientLockError
from pomodoro_store.storage.models import Task

EXPECTED_COMMANDS = {
    "add_task",
    "get_tasks",
    "complete_task",
    "update_task",
    "delete_task",
    "start_pomodoro_session",
    "complete_pomodoro_session",
    "get_task_with_stats",
    "get_daily_stats",
    "get_daily_stats_by_date",
    "get_focus_heatmap",
    "export_data",
    "rebuild_daily_stats",
}


def test_registry_exposes_every_command() -> None:
    assert set(registry.names()) == EXPECTED_COMMANDS


def test_round_trip_through_commands(state: AppState) -> None:
    added = state.run("add_task", text="Write report")
    assert added.ok
    task: Task = added.value

    started = state.run(
        "start_pomodoro_session", task_id=task.id, session_type="work", duration_minutes=25
    )
    assert started.ok
    finished = state.run("complete_pomodoro_session", session_id=started.value)
    assert finished.ok and finished.value is None

    info = state.run("get_task_with_stats", task_id=task.id)
    assert info.ok
    assert info.value.task.actual_pomodoros == 1
    assert info.value.total_time_spent == 25

    heat = state.run("get_focus_heatmap")
    assert heat.ok and heat.value[0].count == 1


def test_not_found_becomes_error_string(state: AppState) -> None:
    result = state.run("complete_task", id="missing")

    assert not result.ok
    assert result.code == ErrorCode.ERR_NOT_FOUND
    assert "task not found: missing" in (result.error or "")


def test_constraint_violation_becomes_error_string(state: AppState) -> None:
    result = state.run("start_pomodoro_session", session_type="nap", duration_minutes=5)

    assert not result.ok
    assert result.code == ErrorCode.ERR_CONSTRAINT_VIOLATION
    assert "nap" in (result.error or "")


def test_unknown_command_and_bad_params(state: AppState) -> None:
    unknown = state.run("launch_rockets")
    assert not unknown.ok and "Unknown command" in (unknown.error or "")

    bad = state.run("add_task", title="wrong name")
    assert not bad.ok and bad.code == "ERR_BAD_REQUEST"


def test_unexpected_exception_is_reported_not_raised(state: AppState) -> None:
    reg = CommandRegistry()

    def explode(store):
        raise KeyError("boom")

    reg.register("explode", explode)
    result = reg.dispatch(state.store, "explode")

    assert not result.ok
    assert result.error == "Internal error while handling explode"


def test_lock_errors_are_retried_then_succeed(state: AppState) -> None:
    reg = CommandRegistry()
    calls = {"n": 0}

    def flaky(store):
        calls["n"] += 1
        if calls["n"] < 3:
            raise TransientLockError("database is locked")
        return "ok"

    reg.register("flaky", flaky)
    result = reg.dispatch(state.store, "flaky", retries=3, retry_delay=0.0)

    assert result.ok and result.value == "ok"
    assert calls["n"] == 3


def test_lock_errors_give_up_after_bounded_attempts(state: AppState) -> None:
    reg = CommandRegistry()
    calls = {"n": 0}

    def locked(store):
        calls["n"] += 1
        raise TransientLockError("database is locked")

    reg.register("locked", locked)
    result = reg.dispatch(state.store, "locked", retries=2, retry_delay=0.0)

    assert not result.ok
    assert result.code == ErrorCode.ERR_TRANSIENT_LOCK
    assert calls["n"] == 2


def test_retry_decorator_does_not_retry_other_errors() -> None:
    calls = {"n": 0}

    @with_lock_retry(max_attempts=5, base_delay=0.0)
    def missing() -> None:
        calls["n"] += 1
        raise NotFoundError("task", "x")

    with pytest.raises(NotFoundError):
        missing()
    assert calls["n"] == 1


def test_submit_returns_future(state: AppState) -> None:
    future = state.executor.submit("get_daily_stats_by_date", date="2099-01-01")
    result = future.result(timeout=5)
    assert result.ok
    assert result.value.pomodoros_completed == 0
