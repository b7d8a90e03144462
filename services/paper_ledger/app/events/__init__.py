"""Ledger event emission and delivery."""

from services.paper_ledger.app.events.outbox import EventOutbox
from services.paper_ledger.app.events.publisher import LedgerEventPublisher
from services.paper_ledger.app.events.relay import SQSEventRelay

__all__ = [
    "EventOutbox",
    "LedgerEventPublisher",
    "SQSEventRelay",
]
