"""Paper Ledger Service - runtime entry point."""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from services.paper_ledger.app.config import Settings, get_settings
from services.paper_ledger.app.core.ledger import PaperLedger
from services.paper_ledger.app.db.models import Base
from services.paper_ledger.app.db.repository import LedgerRepository
from services.paper_ledger.app.events.outbox import EventOutbox
from services.paper_ledger.app.events.publisher import LedgerEventPublisher
from services.paper_ledger.app.events.relay import SQSEventRelay
from shared.utils.db import close_db, create_tables, get_db_session, init_db
from shared.utils.logging import configure_logging, get_logger
from shared.utils.sqs import SQSClient

logger = get_logger(__name__)


@dataclass
class LedgerRuntime:
    """Live ledger together with its event plumbing."""

    settings: Settings
    ledger: PaperLedger
    outbox: EventOutbox
    relay: SQSEventRelay | None = None

    async def flush_events(self) -> int:
        """Deliver pending events. Returns 0 when no queue is configured."""
        if self.relay is None:
            return 0
        return await self.relay.flush_all()

    async def checkpoint(self) -> None:
        """Persist the current ledger state if persistence is enabled."""
        if not self.settings.persistence_enabled:
            return
        snapshot = self.ledger.snapshot()
        async with get_db_session() as session:
            await LedgerRepository(session).save(snapshot)


def build_sqs_client(settings: Settings) -> SQSClient | None:
    """Create the SQS client for event delivery, or None when disabled."""
    if not settings.sqs_queue_url:
        return None
    return SQSClient(
        queue_url=settings.sqs_queue_url,
        region=settings.sqs_region,
        endpoint_url=settings.sqs_endpoint_url,
    )


async def load_ledger(settings: Settings, publisher: LedgerEventPublisher) -> PaperLedger:
    """Restore the persisted ledger, or start an empty one.

    A persisted administrator always wins over the configured one.
    """
    if settings.persistence_enabled:
        async with get_db_session() as session:
            snapshot = await LedgerRepository(session).load()
        if snapshot is not None:
            if settings.admin_identity and settings.admin_identity.strip() != snapshot.admin:
                logger.warning(
                    "admin_identity_mismatch",
                    configured=settings.admin_identity,
                    persisted=snapshot.admin,
                )
            return PaperLedger.from_snapshot(snapshot, publisher=publisher)

    logger.info("ledger_created", admin=settings.admin_identity)
    return PaperLedger(settings.admin_identity, publisher=publisher)


@asynccontextmanager
async def ledger_runtime(settings: Settings | None = None) -> AsyncIterator[LedgerRuntime]:
    """Run the ledger service.

    Startup configures logging, opens the database and restores state.
    Shutdown delivers pending events, saves a snapshot and closes the database.

    Usage:
        async with ledger_runtime() as runtime:
            paper_id = runtime.ledger.submit(caller, "Title", "Author", cid, digest)
    """
    settings = settings or get_settings()

    configure_logging(
        service_name=settings.service_name,
        log_level=settings.log_level,
        json_format=settings.log_json,
    )
    logger.info("starting_service", service=settings.service_name)

    if settings.persistence_enabled:
        init_db(
            database_url=settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            echo=settings.db_echo,
        )
        await create_tables(Base.metadata)
        logger.info("database_initialized")

    try:
        outbox = EventOutbox()
        publisher = LedgerEventPublisher(outbox)
        ledger = await load_ledger(settings, publisher)

        sqs_client = build_sqs_client(settings)
        relay = (
            SQSEventRelay(outbox, sqs_client, batch_size=settings.relay_batch_size)
            if sqs_client is not None
            else None
        )
        runtime = LedgerRuntime(settings=settings, ledger=ledger, outbox=outbox, relay=relay)

        try:
            yield runtime
        finally:
            logger.info("shutting_down_service")
            await runtime.flush_events()
            await runtime.checkpoint()
    finally:
        if settings.persistence_enabled:
            await close_db()
        logger.info("service_shutdown_complete")
