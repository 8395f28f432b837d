# src/pomodoro_store/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- The store is only ever handed a data directory; every path derives from it unless overridden.
- Malformed values fall back to defaults instead of failing at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "POMODORO"

DB_FILE_NAME = "pomodoro.db"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int, *, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_float(name: str, default: float, *, minimum: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def default_data_dir(app_name: str = "pomodoro") -> Path:
    """Per-user data directory (XDG layout; ~/.local/share/<app> when unset)."""
    base = os.getenv("XDG_DATA_HOME")
    root = Path(base).expanduser() if base and base.strip() else Path.home() / ".local" / "share"
    return root / app_name


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    db_path: Path
    log_dir: Path

    # ---- Connection pool / locking ----
    pool_size: int
    pool_timeout: float
    busy_timeout: float
    lock_retries: int
    lock_retry_delay: float

    # ---- Command execution ----
    workers: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "pomodoro").strip() or "pomodoro"
        log_level = _env(_k("LOG_LEVEL"), "INFO").strip().upper() or "INFO"

        data_dir = _env_path(_k("DATA_DIR"), default_data_dir(app_name))
        db_path = _env_path(_k("DB_PATH"), data_dir / DB_FILE_NAME)
        log_dir = _env_path(_k("LOG_DIR"), data_dir / "logs")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            log_dir=log_dir,
            pool_size=_env_int(_k("POOL_SIZE"), 4, minimum=1),
            pool_timeout=_env_float(_k("POOL_TIMEOUT"), 30.0, minimum=0.0),
            busy_timeout=_env_float(_k("BUSY_TIMEOUT"), 5.0, minimum=0.0),
            lock_retries=_env_int(_k("LOCK_RETRIES"), 3, minimum=1),
            lock_retry_delay=_env_float(_k("LOCK_RETRY_DELAY"), 0.05, minimum=0.0),
            workers=_env_int(_k("WORKERS"), 4, minimum=1),
        )

    @staticmethod
    def for_data_dir(data_dir: str | Path, **overrides: object) -> "Settings":
        """Settings rooted at an explicit directory (env still supplies tuning knobs)."""
        base = Settings.from_env()
        root = Path(data_dir).expanduser()
        values: dict[str, object] = {
            "app_name": base.app_name,
            "log_level": base.log_level,
            "data_dir": root,
            "db_path": root / DB_FILE_NAME,
            "log_dir": root / "logs",
            "pool_size": base.pool_size,
            "pool_timeout": base.pool_timeout,
            "busy_timeout": base.busy_timeout,
            "lock_retries": base.lock_retries,
            "lock_retry_delay": base.lock_retry_delay,
            "workers": base.workers,
        }
        values.update(overrides)
        return Settings(**values)  # type: ignore[arg-type]


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
