# tests/fakes.py

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone


class FakeClock:
    """
    Controllable UTC clock for store tests.

    - Callable like utc_now()
    - Thread-safe, so it can be shared by concurrent command workers
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, when: datetime) -> None:
        with self._lock:
            self._now = when

    def advance(self, **delta: float) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(**delta)
            return self._now
