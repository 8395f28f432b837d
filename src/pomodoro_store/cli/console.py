# src/pomodoro_store/cli/console.py

"""
Line-oriented console over the command layer.

Tasks can be referenced by their number in the last /tasks listing or by an id prefix.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..core.commands import CommandResult
from ..core.state import AppState
from ..storage.models import DailyStat, HeatmapPoint, Task, TaskWithStats
from .bootstrap import default_export_path, write_export

logger = logging.getLogger(__name__)

SlashHandler = Callable[[AppState, list[str]], str]

_LEVEL_GLYPHS = " .:*#"


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


class SlashCommands:
    """Simple slash-command registry (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, SlashHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: SlashHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases or []:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."
        return handler(state, parts[1:])

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - quit")
        return "\n".join(lines)


slash = SlashCommands()

# Task ids shown by the last /tasks listing, 1-based in the UI.
_last_listing: list[str] = []


def _error(result: CommandResult) -> str:
    return f"[ERR] {result.error}"


def _format_task(n: int, task: Task) -> str:
    mark = "x" if task.completed else " "
    return (
        f"{n:>3}. [{mark}] {task.text}  "
        f"(p={task.priority}, {task.actual_pomodoros}/{task.estimated_pomodoros} pomodoros, "
        f"id={task.id[:8]})"
    )


def _format_stat(stat: DailyStat) -> str:
    return (
        f"{stat.date}: {stat.pomodoros_completed} pomodoros, "
        f"{stat.total_work_time} min focused, {stat.tasks_completed} tasks done"
    )


def _resolve_task(state: AppState, ref: str) -> str | None:
    ref = ref.strip()
    if ref.isdigit():
        idx = int(ref) - 1
        if 0 <= idx < len(_last_listing):
            return _last_listing[idx]
        return None

    result = state.run("get_tasks")
    if not result.ok:
        return None
    matches = [t.id for t in result.value if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _need_task(state: AppState, args: list[str], usage: str) -> tuple[str | None, str | None]:
    if not args:
        return None, f"Usage: {usage}"
    task_id = _resolve_task(state, args[0])
    if task_id is None:
        return None, f"No single task matches {args[0]!r}. Use /tasks to list them."
    return task_id, None


def cmd_help(state: AppState, args: list[str]) -> str:
    return slash.build_help()


def cmd_tasks(state: AppState, args: list[str]) -> str:
    result = state.run("get_tasks")
    if not result.ok:
        return _error(result)
    tasks: list[Task] = result.value
    _last_listing[:] = [t.id for t in tasks]
    if not tasks:
        return "No tasks yet. Add one with /add <text>."
    return "Tasks:\n" + "\n".join(_format_task(i, t) for i, t in enumerate(tasks, 1))


def cmd_add(state: AppState, args: list[str]) -> str:
    result = state.run("add_task", text=" ".join(args))
    if not result.ok:
        return _error(result)
    return f"Added task {result.value.id[:8]}: {result.value.text}"


def _set_completed(state: AppState, args: list[str], completed: bool) -> str:
    name = "/done" if completed else "/undo"
    task_id, err = _need_task(state, args, f"{name} <task>")
    if err:
        return err
    result = state.run("complete_task", id=task_id, completed=completed)
    if not result.ok:
        return _error(result)
    return "Task completed." if completed else "Task reopened."


def cmd_done(state: AppState, args: list[str]) -> str:
    return _set_completed(state, args, True)


def cmd_undo(state: AppState, args: list[str]) -> str:
    return _set_completed(state, args, False)


def cmd_edit(state: AppState, args: list[str]) -> str:
    usage = "/edit <task> <priority> <estimate> <text...>"
    if len(args) < 4:
        return f"Usage: {usage}"
    task_id, err = _need_task(state, args, usage)
    if err:
        return err
    try:
        priority = int(args[1])
        estimate = int(args[2])
    except ValueError:
        return f"Priority and estimate must be integers. Usage: {usage}"
    result = state.run(
        "update_task",
        id=task_id,
        text=" ".join(args[3:]),
        priority=priority,
        estimated_pomodoros=estimate,
    )
    return _error(result) if not result.ok else "Task updated."


def cmd_rm(state: AppState, args: list[str]) -> str:
    task_id, err = _need_task(state, args, "/rm <task>")
    if err:
        return err
    result = state.run("delete_task", id=task_id)
    return _error(result) if not result.ok else "Task deleted (its sessions are kept)."


def cmd_start(state: AppState, args: list[str]) -> str:
    usage = "/start <work|short_break|long_break> <minutes> [task]"
    if len(args) < 2:
        return f"Usage: {usage}"
    try:
        minutes = int(args[1])
    except ValueError:
        return f"Minutes must be an integer. Usage: {usage}"

    task_id = None
    if len(args) > 2:
        task_id, err = _need_task(state, args[2:], usage)
        if err:
            return err

    result = state.run(
        "start_pomodoro_session",
        session_type=args[0],
        duration_minutes=minutes,
        task_id=task_id,
    )
    if not result.ok:
        return _error(result)
    state.active_session_id = result.value
    return f"Started {args[0]} session ({minutes} min), id={result.value[:8]}."


def cmd_finish(state: AppState, args: list[str]) -> str:
    """/finish [interrupted|skipped]: close the session started with /start."""
    session_id = state.active_session_id
    if session_id is None:
        return "No running session. Start one with /start."

    flag = args[0].lower() if args else ""
    if flag not in ("", "interrupted", "skipped"):
        return "Usage: /finish [interrupted|skipped]"
    was_interrupted = flag == "interrupted"
    was_completed = flag != "skipped"

    result = state.run(
        "complete_pomodoro_session",
        session_id=session_id,
        was_completed=was_completed,
        was_interrupted=was_interrupted,
    )
    if not result.ok:
        return _error(result)
    state.active_session_id = None
    if was_interrupted:
        return "Session marked as interrupted."
    return "Session finished." if was_completed else "Session skipped."


def cmd_task(state: AppState, args: list[str]) -> str:
    task_id, err = _need_task(state, args, "/task <task>")
    if err:
        return err
    result = state.run("get_task_with_stats", task_id=task_id)
    if not result.ok:
        return _error(result)
    info: TaskWithStats = result.value
    lines = [
        _format_task(1, info.task).split(". ", 1)[1],
        f"Focused: {info.total_time_spent} min over {len(info.pomodoro_sessions)} sessions",
    ]
    for s in info.pomodoro_sessions[:10]:
        status = "interrupted" if s.interrupted else ("done" if s.completed_at else "running")
        lines.append(f"  {s.started_at[:16]} {s.session_type.value} {s.duration_minutes}m {status}")
    return "\n".join(lines)


def cmd_stats(state: AppState, args: list[str]) -> str:
    if args:
        result = state.run("get_daily_stats_by_date", date=args[0])
        return _error(result) if not result.ok else _format_stat(result.value)

    result = state.run("get_daily_stats", limit=7)
    if not result.ok:
        return _error(result)
    stats: list[DailyStat] = result.value
    if not stats:
        return "No stats yet."
    return "Recent days:\n" + "\n".join("  " + _format_stat(s) for s in stats)


def cmd_heatmap(state: AppState, args: list[str]) -> str:
    try:
        days = int(args[0]) if args else 30
    except ValueError:
        return "Usage: /heatmap [days]"
    result = state.run("get_focus_heatmap", days=days)
    if not result.ok:
        return _error(result)
    points: list[HeatmapPoint] = result.value
    if not points:
        return f"No focus sessions in the last {days} days."
    return "\n".join(
        f"  {p.date} {_LEVEL_GLYPHS[p.level] * 4} {p.count}" for p in points
    )


def cmd_export(state: AppState, args: list[str]) -> str:
    result = state.run("export_data")
    if not result.ok:
        return _error(result)
    data = result.value
    path = args[0] if args else default_export_path(state.settings, data["exported_at"])
    try:
        written = write_export(data, path)
    except OSError as e:
        logger.warning("Export to %s failed: %s", path, e)
        return f"[ERR] Could not write export: {e}"
    return f"Exported to {written}"


def cmd_repair(state: AppState, args: list[str]) -> str:
    result = state.run("rebuild_daily_stats")
    return _error(result) if not result.ok else f"Daily stats rebuilt ({result.value} days)."


slash.register("help", cmd_help, "show this help", aliases=["h"])
slash.register("tasks", cmd_tasks, "list tasks", aliases=["ls"])
slash.register("add", cmd_add, "add a task: /add <text>")
slash.register("done", cmd_done, "complete a task: /done <task>")
slash.register("undo", cmd_undo, "reopen a task: /undo <task>")
slash.register("edit", cmd_edit, "edit: /edit <task> <priority> <estimate> <text...>")
slash.register("rm", cmd_rm, "delete a task: /rm <task>")
slash.register("start", cmd_start, "start a session: /start <kind> <minutes> [task]")
slash.register("finish", cmd_finish, "finish the running session: /finish [interrupted|skipped]")
slash.register("task", cmd_task, "task details with sessions: /task <task>")
slash.register("stats", cmd_stats, "recent daily stats, or one day: /stats [YYYY-MM-DD]")
slash.register("heatmap", cmd_heatmap, "focus heatmap: /heatmap [days]")
slash.register("export", cmd_export, "export everything as JSON: /export [path]")
slash.register("repair", cmd_repair, "rebuild daily stats from the session log")


def run_console_loop(state: AppState) -> None:
    logger.info("Console started db=%s", state.store.db_path)
    _print_ts("Type /help for commands. Use /exit to quit.")

    while True:
        try:
            line = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = slash.handle(state, line)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            reply = "Commands start with '/'. Use /help to list them."
        _print_ts(reply)

    logger.info("Console finished.")
