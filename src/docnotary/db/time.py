# src/docnotary/db/time.py
"""Clock sources handed to the registry."""

from __future__ import annotations

from datetime import UTC, datetime
from threading import Lock
from typing import Protocol


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


class Clock(Protocol):
    """Source of unix-second timestamps supplied by the execution environment."""

    def now(self) -> int: ...


class SystemClock:
    """Wall clock that never steps backwards.

    Document ``sent_at`` values must be non-decreasing, so a clock adjustment
    that moves wall time back is absorbed by repeating the last reading.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = Lock()

    def now(self) -> int:
        current = int(utcnow().timestamp())
        with self._lock:
            if current < self._last:
                return self._last
            self._last = current
            return current
