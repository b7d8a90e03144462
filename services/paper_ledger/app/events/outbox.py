"""In-process outbox holding emitted events until they are relayed."""

import threading
from collections import deque
from typing import Iterable

from shared.schemas.events import BaseEvent
from shared.utils.logging import get_logger
from shared.utils.metrics import create_counter

logger = get_logger(__name__)

# Metrics
EVENTS_DROPPED = create_counter(
    "ledger_events_dropped_total",
    "Total events discarded because the outbox was full",
    ["event_type"],
)


class EventOutbox:
    """Thread-safe FIFO of ledger events awaiting delivery.

    When bounded, overflow discards the oldest events. Every discarded event
    is logged and counted.
    """

    def __init__(self, max_size: int | None = None):
        """Initialize the outbox.

        Args:
            max_size: Optional bound; the oldest events are dropped beyond it
        """
        self.max_size = max_size
        self._events: deque[BaseEvent] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def _trim(self) -> None:
        if self.max_size is None:
            return
        dropped = []
        while len(self._events) > self.max_size:
            dropped.append(self._events.popleft())
        for event in dropped:
            EVENTS_DROPPED.labels(event_type=event.event_type).inc()
        if dropped:
            logger.warning(
                "outbox_overflow",
                dropped=len(dropped),
                max_size=self.max_size,
                event_ids=[str(event.event_id) for event in dropped],
            )

    def append(self, event: BaseEvent) -> None:
        """Queue an event behind everything already pending."""
        with self._lock:
            self._events.append(event)
            self._trim()

    def drain(self, limit: int | None = None) -> list[BaseEvent]:
        """Remove and return up to ``limit`` events from the head."""
        with self._lock:
            count = len(self._events) if limit is None else min(limit, len(self._events))
            return [self._events.popleft() for _ in range(count)]

    def requeue(self, events: Iterable[BaseEvent]) -> None:
        """Put undelivered events back at the head, keeping their order."""
        with self._lock:
            self._events.extendleft(reversed(list(events)))
            self._trim()

    def snapshot(self) -> list[BaseEvent]:
        """Return pending events without removing them."""
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        """Drop every pending event."""
        with self._lock:
            self._events.clear()
