"""Relay that delivers outbox events to SQS."""

from services.paper_ledger.app.events.outbox import EventOutbox
from shared.schemas.events import BaseEvent
from shared.utils.logging import get_logger
from shared.utils.metrics import create_counter
from shared.utils.sqs import SQSClient

logger = get_logger(__name__)

# Metrics
EVENTS_RELAYED = create_counter(
    "ledger_events_relayed_total",
    "Total events delivered to the event queue",
    ["event_type"],
)
EVENTS_RELAY_FAILED = create_counter(
    "ledger_events_relay_failed_total",
    "Total events that failed to deliver",
    ["event_type"],
)


def message_group_for(event: BaseEvent) -> str:
    """FIFO group key: events about one paper (or the auditor set) stay ordered."""
    paper_id = getattr(event, "paper_id", None)
    if paper_id is not None:
        return f"paper-{paper_id}"
    return "auditors"


class SQSEventRelay:
    """Drains the ledger outbox and sends each event to SQS.

    Delivery failures never touch ledger state: the undelivered events go
    back to the head of the outbox for the next flush.
    """

    def __init__(
        self,
        outbox: EventOutbox,
        sqs_client: SQSClient,
        batch_size: int = 10,
    ):
        """Initialize relay.

        Args:
            outbox: Outbox filled by the ledger's event publisher
            sqs_client: Configured SQS client
            batch_size: Maximum events sent per flush
        """
        self.outbox = outbox
        self.sqs_client = sqs_client
        self.batch_size = batch_size

    async def _send(self, event: BaseEvent) -> str:
        if self.sqs_client.is_fifo:
            return await self.sqs_client.send_message(
                event,
                message_group_id=message_group_for(event),
                deduplication_id=str(event.event_id),
            )
        return await self.sqs_client.send_message(event)

    async def flush(self) -> int:
        """Deliver up to one batch of pending events, in order.

        Stops at the first failure and re-queues that event and the rest of
        the batch.

        Returns:
            Number of events delivered
        """
        batch = self.outbox.drain(self.batch_size)
        delivered = 0

        for position, event in enumerate(batch):
            try:
                message_id = await self._send(event)
            except Exception as e:
                EVENTS_RELAY_FAILED.labels(event_type=event.event_type).inc()
                logger.error(
                    "event_relay_failed",
                    event_type=event.event_type,
                    event_id=str(event.event_id),
                    requeued=len(batch) - position,
                    error=str(e),
                )
                self.outbox.requeue(batch[position:])
                break

            delivered += 1
            EVENTS_RELAYED.labels(event_type=event.event_type).inc()
            logger.info(
                "event_relayed",
                event_type=event.event_type,
                event_id=str(event.event_id),
                message_id=message_id,
            )

        return delivered

    async def flush_all(self) -> int:
        """Flush batches until the outbox is empty or a delivery fails.

        Returns:
            Total number of events delivered
        """
        total = 0
        while len(self.outbox):
            pending = len(self.outbox)
            delivered = await self.flush()
            total += delivered
            if delivered < min(pending, self.batch_size):
                break
        return total
