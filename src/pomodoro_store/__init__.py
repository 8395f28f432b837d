# src/pomodoro_store/__init__.py

"""SQLite-backed task and session store for a desktop pomodoro timer."""

__version__ = "0.2.0"
