# src/pomodoro_store/core/__init__.py
