# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Every path derives from POMODORO_DATA_DIR unless overridden explicitly.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "POMODORO_APP_NAME": "App name, also the data dir name (default: pomodoro).",
    "POMODORO_LOG_LEVEL": "Console logging level (default: INFO). The log file is always DEBUG.",
    # Paths
    "POMODORO_DATA_DIR": "Data directory (default: $XDG_DATA_HOME/pomodoro, else ~/.local/share).",
    "POMODORO_DB_PATH": "SQLite database path (default: <data_dir>/pomodoro.db).",
    "POMODORO_LOG_DIR": "Log directory (default: <data_dir>/logs).",
    # Connection pool / locking
    "POMODORO_POOL_SIZE": "Max pooled connections (default: 4).",
    "POMODORO_POOL_TIMEOUT": "Seconds to wait for a free connection (default: 30).",
    "POMODORO_BUSY_TIMEOUT": "SQLite busy timeout in seconds (default: 5).",
    "POMODORO_LOCK_RETRIES": "Attempts per command on a lock error (default: 3).",
    "POMODORO_LOCK_RETRY_DELAY": "First retry delay in seconds, doubled per retry (default: 0.05).",
    # Commands
    "POMODORO_WORKERS": "Command worker threads (default: 4).",
}
