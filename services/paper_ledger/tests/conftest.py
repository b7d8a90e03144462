"""Pytest fixtures for Paper Ledger tests."""

from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from services.paper_ledger.app.core.ledger import PaperLedger
from services.paper_ledger.app.db.models import Base
from services.paper_ledger.app.events.outbox import EventOutbox
from services.paper_ledger.app.events.publisher import LedgerEventPublisher
from services.paper_ledger.tests.factories import ADMIN, ALICE, AUDITOR, FakeClock, digest


@pytest.fixture
def clock() -> FakeClock:
    """Deterministic clock."""
    return FakeClock()


@pytest.fixture
def outbox() -> EventOutbox:
    """Empty event outbox."""
    return EventOutbox()


@pytest.fixture
def publisher(outbox) -> LedgerEventPublisher:
    """Publisher writing to the test outbox."""
    return LedgerEventPublisher(outbox)


@pytest.fixture
def ledger(publisher, clock) -> PaperLedger:
    """Empty ledger administered by ADMIN."""
    return PaperLedger(ADMIN, publisher=publisher, clock=clock)


@pytest.fixture
def reviewed_ledger(ledger, outbox) -> PaperLedger:
    """Ledger with AUDITOR registered and the outbox cleared."""
    ledger.add_auditor(ADMIN, AUDITOR)
    outbox.clear()
    return ledger


@pytest.fixture
def published_paper(reviewed_ledger, outbox) -> int:
    """Id of a paper by ALICE that AUDITOR already approved."""
    paper_id = reviewed_ledger.submit(ALICE, "Paper", "Alice", "cid-original", digest("original"))
    reviewed_ledger.approve(AUDITOR, paper_id)
    outbox.clear()
    return paper_id


@pytest.fixture
async def db_engine():
    """Create in-memory SQLite database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    async with session_factory() as session:
        yield session
