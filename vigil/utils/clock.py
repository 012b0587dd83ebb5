"""Strictly increasing UTC clock for record timestamps."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MonotonicClock:
    """Wall-clock UTC time that never repeats or goes backwards.

    Two mutations in the same microsecond still get distinct, ordered
    ``updated_at`` values. ``source`` lets tests drive time explicitly.
    """

    def __init__(self, source: Optional[Callable[[], datetime]] = None):
        self._source = source or utc_now
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = self._source()
            if self._last is not None and current <= self._last:
                current = self._last + _TICK
            self._last = current
            return current

    def peek(self) -> datetime:
        """Current source time without advancing the clock."""
        return self._source()
