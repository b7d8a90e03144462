"""Injectable wall clock that never moves backwards."""

import threading
from datetime import datetime, timezone
from typing import Callable

from shared.schemas.events import utc_now


class MonotonicClock:
    """Wall clock whose readings are non-decreasing.

    If the underlying time source steps back (NTP adjustment, replayed test
    source), the last reading is returned again instead.
    """

    def __init__(self, source: Callable[[], datetime] = utc_now):
        self._source = source
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """Return the current timestamp, never earlier than the previous one."""
        with self._lock:
            current = self._source()
            if current.tzinfo is None:
                current = current.replace(tzinfo=timezone.utc)
            if self._last is not None and current < self._last:
                current = self._last
            self._last = current
            return current

    def __call__(self) -> datetime:
        return self.now()
