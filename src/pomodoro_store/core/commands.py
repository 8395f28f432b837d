# src/pomodoro_store/core/commands.py

"""
Named request/response commands the front end invokes.

A command never raises to its caller: it yields CommandResult(ok=True, value=...)
or CommandResult(ok=False, error="<descriptive string>"). Transient lock errors are
retried a bounded number of times with exponential backoff before being reported.
"""

from __future__ import annotations

import functools
import inspect
import logging
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from ..errors import StoreError, TransientLockError, describe_error
from ..storage.store import PomodoroStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

CommandHandler = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class CommandResult:
    ok: bool
    value: Any = None
    error: str | None = None
    code: str | None = None

    @staticmethod
    def success(value: Any = None) -> CommandResult:
        return CommandResult(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str | None = None) -> CommandResult:
        return CommandResult(ok=False, error=error, code=code)


def with_lock_retry(
    max_attempts: int = 3,
    base_delay: float = 0.05,
    max_delay: float = 2.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry a call on TransientLockError with exponential backoff.

    Any other error propagates immediately; after the last attempt the lock error
    itself is re-raised.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except TransientLockError as e:
                    if attempt >= max_attempts - 1:
                        raise
                    delay = min(base_delay * (2**attempt), max_delay)
                    logger.warning(
                        "%s hit a database lock (attempt %s/%s), retrying in %.2fs: %s",
                        getattr(func, "__name__", "call"),
                        attempt + 1,
                        max_attempts,
                        delay,
                        e,
                    )
                    time.sleep(delay)
            raise RuntimeError("unreachable")

        return wrapper

    return decorator


class CommandRegistry:
    """Maps command names onto store-level handlers (store, **params) -> value."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(self, name: str, handler: CommandHandler, help_text: str = "") -> None:
        self._handlers[name] = handler
        self._help[name] = help_text

    def command(self, name: str, help_text: str = "") -> Callable[[CommandHandler], CommandHandler]:
        def decorator(handler: CommandHandler) -> CommandHandler:
            self.register(name, handler, help_text)
            return handler

        return decorator

    def names(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def dispatch(
        self,
        store: PomodoroStore,
        name: str,
        params: dict[str, Any] | None = None,
        *,
        retries: int = 3,
        retry_delay: float = 0.05,
    ) -> CommandResult:
        handler = self._handlers.get(name)
        if handler is None:
            return CommandResult.failure(f"Unknown command: {name}", code="ERR_UNKNOWN_COMMAND")

        params = dict(params or {})
        try:
            inspect.signature(handler).bind(store, **params)
        except TypeError as e:
            logger.info("Command %s rejected parameters %s: %s", name, sorted(params), e)
            return CommandResult.failure(
                f"Invalid parameters for {name}: {e}", code="ERR_BAD_REQUEST"
            )

        call = with_lock_retry(max_attempts=max(1, retries), base_delay=retry_delay)(handler)
        try:
            value = call(store, **params)
        except StoreError as e:
            logger.info("Command %s failed [%s]: %s", name, e.code, e)
            return CommandResult.failure(describe_error(e), code=e.code)
        except Exception:
            logger.exception("Command %s crashed.", name)
            return CommandResult.failure(f"Internal error while handling {name}")
        return CommandResult.success(value)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  {name} - {help_text}" if help_text else f"  {name}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- tasks ----


@registry.command("add_task", "create a task from text")
def add_task(store: PomodoroStore, text: str):
    return store.add_task(text)


@registry.command("get_tasks", "list tasks by priority, newest first")
def get_tasks(store: PomodoroStore):
    return store.get_tasks()


@registry.command("complete_task", "mark a task done (completed=False reopens it)")
def complete_task(store: PomodoroStore, id: str, completed: bool = True):
    store.complete_task(id, completed)


@registry.command("update_task", "edit text, priority and estimate")
def update_task(
    store: PomodoroStore, id: str, text: str, priority: int = 0, estimated_pomodoros: int = 1
):
    store.update_task(id, text, priority, estimated_pomodoros)


@registry.command("delete_task", "delete a task; its sessions are kept")
def delete_task(store: PomodoroStore, id: str):
    store.delete_task(id)


# ---- sessions ----


@registry.command("start_pomodoro_session", "start a work/short_break/long_break session")
def start_pomodoro_session(
    store: PomodoroStore,
    session_type: str,
    duration_minutes: int,
    task_id: str | None = None,
):
    return store.start_session(task_id, session_type, duration_minutes)


@registry.command("complete_pomodoro_session", "finish a session (completed and/or interrupted)")
def complete_pomodoro_session(
    store: PomodoroStore,
    session_id: str,
    was_completed: bool = True,
    was_interrupted: bool = False,
):
    store.complete_session(session_id, was_completed, was_interrupted)


@registry.command("get_task_with_stats", "a task with its sessions and focused minutes")
def get_task_with_stats(store: PomodoroStore, task_id: str):
    return store.get_task_with_stats(task_id)


# ---- stats / export ----


@registry.command("get_daily_stats", "recent daily totals, newest first")
def get_daily_stats(store: PomodoroStore, limit: int = 30):
    return store.get_daily_stats(limit)


@registry.command("get_daily_stats_by_date", "totals for one YYYY-MM-DD day")
def get_daily_stats_by_date(store: PomodoroStore, date: str):
    return store.get_daily_stats_by_date(date)


@registry.command("get_focus_heatmap", "counted work sessions per day")
def get_focus_heatmap(store: PomodoroStore, days: int = 365):
    return store.get_focus_heatmap(days)


@registry.command("export_data", "full snapshot of tasks, sessions and daily stats")
def export_data(store: PomodoroStore):
    return store.export_data()


@registry.command("rebuild_daily_stats", "recompute daily stats from the session log")
def rebuild_daily_stats(store: PomodoroStore):
    return store.rebuild_daily_stats()


class CommandExecutor:
    """
    Runs commands on a small thread pool, one pooled connection per in-flight command.

    run() blocks for the result; submit() hands back a Future.
    """

    def __init__(
        self,
        store: PomodoroStore,
        *,
        workers: int = 4,
        retries: int = 3,
        retry_delay: float = 0.05,
        commands: CommandRegistry | None = None,
    ) -> None:
        self._store = store
        self._retries = retries
        self._retry_delay = retry_delay
        self._commands = commands or registry
        self._pool = ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="cmd")

    @property
    def commands(self) -> CommandRegistry:
        return self._commands

    def _dispatch(self, name: str, params: dict[str, Any]) -> CommandResult:
        return self._commands.dispatch(
            self._store,
            name,
            params,
            retries=self._retries,
            retry_delay=self._retry_delay,
        )

    def submit(self, name: str, **params: Any) -> Future[CommandResult]:
        return self._pool.submit(self._dispatch, name, params)

    def run(self, name: str, **params: Any) -> CommandResult:
        return self.submit(name, **params).result()

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> CommandExecutor:
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()
