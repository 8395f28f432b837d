# src/pomodoro_store/cli/__init__.py
