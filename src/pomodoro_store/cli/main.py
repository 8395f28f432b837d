# src/pomodoro_store/cli/main.py

"""
CLI entrypoint.

Initializes logging, opens the store (migrating it if needed), then runs the console.
A store that cannot be opened or migrated aborts startup with exit code 1.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..errors import MigrationError, StorageUnavailableError, describe_error
from ..logging_setup import level_from_name, setup_logging
from .bootstrap import create_initial_state, shutdown
from .console import run_console_loop

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()

    try:
        log_file = setup_logging(
            log_dir=settings.log_dir,
            console_level=level_from_name(settings.log_level),
        )
    except OSError as e:
        print(f"Cannot create log directory {settings.log_dir}: {e}")
        return 1

    logger.info("Starting %s (log=%s)...", settings.app_name, log_file)

    try:
        state = create_initial_state(settings=settings)
    except (StorageUnavailableError, MigrationError) as e:
        logger.error("Startup failed [%s]: %s", e.code, describe_error(e))
        return 1

    try:
        run_console_loop(state)
    finally:
        shutdown(state)
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
