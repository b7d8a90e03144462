"""Tests for ledger repository persistence."""

import pytest
from sqlalchemy import func, select

from services.paper_ledger.app.core.ledger import PaperLedger
from services.paper_ledger.app.db.models import PaperModel, VersionModel
from services.paper_ledger.app.db.repository import LedgerRepository
from services.paper_ledger.app.errors import ConflictError
from services.paper_ledger.tests.factories import ADMIN, ALICE, AUDITOR, BOB, digest
from shared.schemas.paper import PaperStatus


@pytest.fixture
def populated_ledger(reviewed_ledger) -> PaperLedger:
    first = reviewed_ledger.submit(ALICE, "First", "Alice", "cid-1", digest("one"))
    second = reviewed_ledger.submit(BOB, "Second", "Bob", "cid-2", digest("two"))
    reviewed_ledger.approve(AUDITOR, first)
    reviewed_ledger.add_version(ALICE, first, "cid-1b", digest("one-b"), signature="0xbeef")
    reviewed_ledger.reject(AUDITOR, second)
    reviewed_ledger.submit(BOB, "Third", "Bob", "cid-3", digest("one"))
    return reviewed_ledger


class TestLedgerRepository:
    """Tests for LedgerRepository."""

    @pytest.mark.asyncio
    async def test_load_empty_database(self, db_session):
        """Test loading before anything was saved."""
        assert await LedgerRepository(db_session).load() is None

    @pytest.mark.asyncio
    async def test_save_and_load(self, session_factory, populated_ledger):
        """Test a saved snapshot loads back unchanged."""
        snapshot = populated_ledger.snapshot()

        async with session_factory() as session:
            await LedgerRepository(session).save(snapshot)
            await session.commit()

        async with session_factory() as session:
            loaded = await LedgerRepository(session).load()

        assert loaded == snapshot

    @pytest.mark.asyncio
    async def test_version_rows(self, session_factory, populated_ledger):
        """Test every version is stored under its index."""
        async with session_factory() as session:
            await LedgerRepository(session).save(populated_ledger.snapshot())
            await session.commit()

        async with session_factory() as session:
            result = await session.execute(
                select(VersionModel)
                .where(VersionModel.paper_id == 1)
                .order_by(VersionModel.version_index)
            )
            versions = result.scalars().all()

        assert [v.version_index for v in versions] == [0, 1]
        assert versions[1].content_hash == digest("one-b")
        assert versions[1].signature == b"\xbe\xef"

    @pytest.mark.asyncio
    async def test_status_stored_as_ordinal(self, session_factory, populated_ledger):
        """Test statuses use their fixed integer ordinals."""
        async with session_factory() as session:
            await LedgerRepository(session).save(populated_ledger.snapshot())
            await session.commit()

        async with session_factory() as session:
            result = await session.execute(
                select(PaperModel.paper_id, PaperModel.status).order_by(PaperModel.paper_id)
            )
            rows = result.all()

        assert [tuple(row) for row in rows] == [(1, 1), (2, 2), (3, 0)]

    @pytest.mark.asyncio
    async def test_save_replaces_previous_state(self, session_factory, populated_ledger):
        """Test saving again overwrites rather than accumulates."""
        async with session_factory() as session:
            await LedgerRepository(session).save(populated_ledger.snapshot())
            await session.commit()

        populated_ledger.reset()
        populated_ledger.submit(ALICE, "Only", "Alice", "cid-only", digest("only"))

        async with session_factory() as session:
            await LedgerRepository(session).save(populated_ledger.snapshot())
            await session.commit()

        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(PaperModel))
            loaded = await LedgerRepository(session).load()

        assert count == 1
        assert loaded.paper_count == 1
        assert loaded.auditors == []
        assert loaded.used_content_hashes == []

    @pytest.mark.asyncio
    async def test_uncommitted_save_is_rolled_back(self, session_factory, populated_ledger):
        """Test the repository leaves the transaction to its caller."""
        async with session_factory() as session:
            await LedgerRepository(session).save(populated_ledger.snapshot())
            await session.rollback()

        async with session_factory() as session:
            assert await LedgerRepository(session).load() is None

    @pytest.mark.asyncio
    async def test_restored_ledger_from_database(self, session_factory, populated_ledger):
        """Test a ledger rebuilt from the database keeps its guards."""
        async with session_factory() as session:
            await LedgerRepository(session).save(populated_ledger.snapshot())
            await session.commit()

        async with session_factory() as session:
            snapshot = await LedgerRepository(session).load()
        ledger = PaperLedger.from_snapshot(snapshot)

        assert ledger.admin == ADMIN
        assert ledger.is_auditor(AUDITOR)
        assert ledger.get_paper_info(1).status == PaperStatus.PUBLISHED
        assert ledger.get_version(1, 1).created_at.tzinfo is not None
        with pytest.raises(ConflictError):
            ledger.approve(AUDITOR, 3)
