"""Event publisher for ledger notifications."""

from datetime import datetime

from services.paper_ledger.app.events.outbox import EventOutbox
from shared.schemas.events import (
    AuditorAddedEvent,
    AuditorRemovedEvent,
    BaseEvent,
    PaperApprovedEvent,
    PaperRejectedEvent,
    PaperRemovedEvent,
    PaperSubmittedEvent,
    VersionAddedEvent,
    utc_now,
)
from shared.schemas.paper import Version
from shared.utils.logging import get_correlation_id, get_logger
from shared.utils.metrics import create_counter

logger = get_logger(__name__)

# Metrics
EVENTS_EMITTED = create_counter(
    "ledger_events_emitted_total",
    "Total events emitted by the ledger",
    ["event_type"],
)


class LedgerEventPublisher:
    """Builds ledger events and queues them on the outbox.

    Called by the ledger after a mutation succeeded, while it still holds
    its lock, so outbox order matches mutation order.
    """

    def __init__(self, outbox: EventOutbox):
        """Initialize publisher with an outbox.

        Args:
            outbox: Queue that the relay drains
        """
        self.outbox = outbox

    def _emit(self, event: BaseEvent) -> BaseEvent:
        self.outbox.append(event)
        EVENTS_EMITTED.labels(event_type=event.event_type).inc()
        logger.debug(
            "event_emitted",
            event_type=event.event_type,
            event_id=str(event.event_id),
        )
        return event

    def publish_paper_submitted(
        self,
        paper_id: int,
        owner: str,
        title: str,
        author: str,
        version: Version,
    ) -> BaseEvent:
        """Publish PaperSubmitted with the full original version payload."""
        return self._emit(
            PaperSubmittedEvent(
                paper_id=paper_id,
                owner=owner,
                title=title,
                author=author,
                version_index=0,
                content_id=version.content_id,
                content_hash=version.content_hash.hex(),
                signature=version.signature.hex(),
                created_at=version.created_at,
                correlation_id=get_correlation_id(),
                timestamp=version.created_at,
            )
        )

    def publish_paper_approved(
        self,
        paper_id: int,
        auditor: str,
        content_hash: bytes,
        timestamp: datetime | None = None,
    ) -> BaseEvent:
        """Publish PaperApproved."""
        return self._emit(
            PaperApprovedEvent(
                paper_id=paper_id,
                auditor=auditor,
                content_hash=content_hash.hex(),
                correlation_id=get_correlation_id(),
                timestamp=timestamp or utc_now(),
            )
        )

    def publish_paper_rejected(
        self,
        paper_id: int,
        auditor: str,
        timestamp: datetime | None = None,
    ) -> BaseEvent:
        """Publish PaperRejected."""
        return self._emit(
            PaperRejectedEvent(
                paper_id=paper_id,
                auditor=auditor,
                correlation_id=get_correlation_id(),
                timestamp=timestamp or utc_now(),
            )
        )

    def publish_paper_removed(
        self,
        paper_id: int,
        owner: str,
        timestamp: datetime | None = None,
    ) -> BaseEvent:
        """Publish PaperRemoved."""
        return self._emit(
            PaperRemovedEvent(
                paper_id=paper_id,
                owner=owner,
                correlation_id=get_correlation_id(),
                timestamp=timestamp or utc_now(),
            )
        )

    def publish_version_added(
        self,
        paper_id: int,
        owner: str,
        version_index: int,
        version: Version,
    ) -> BaseEvent:
        """Publish VersionAdded with the new version's index."""
        return self._emit(
            VersionAddedEvent(
                paper_id=paper_id,
                owner=owner,
                version_index=version_index,
                content_id=version.content_id,
                content_hash=version.content_hash.hex(),
                created_at=version.created_at,
                correlation_id=get_correlation_id(),
                timestamp=version.created_at,
            )
        )

    def publish_auditor_added(
        self,
        auditor: str,
        admin: str,
        timestamp: datetime | None = None,
    ) -> BaseEvent:
        """Publish AuditorAdded."""
        return self._emit(
            AuditorAddedEvent(
                auditor=auditor,
                admin=admin,
                correlation_id=get_correlation_id(),
                timestamp=timestamp or utc_now(),
            )
        )

    def publish_auditor_removed(
        self,
        auditor: str,
        admin: str,
        timestamp: datetime | None = None,
    ) -> BaseEvent:
        """Publish AuditorRemoved."""
        return self._emit(
            AuditorRemovedEvent(
                auditor=auditor,
                admin=admin,
                correlation_id=get_correlation_id(),
                timestamp=timestamp or utc_now(),
            )
        )
