"""Tests for the ledger runtime lifecycle."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from services.paper_ledger.app import main as main_module
from services.paper_ledger.app.config import Settings
from services.paper_ledger.app.errors import InvalidArgumentError
from services.paper_ledger.app.main import build_sqs_client, ledger_runtime
from services.paper_ledger.tests.factories import ADMIN, ALICE, AUDITOR, BOB, digest
from shared.schemas.paper import PaperStatus


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        admin_identity=ADMIN,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        log_json=False,
        sqs_queue_url=None,
    )


class TestLedgerRuntime:
    """Tests for ledger_runtime."""

    @pytest.mark.asyncio
    async def test_state_survives_restart(self, settings):
        """Test shutdown saves a snapshot that the next start restores."""
        async with ledger_runtime(settings) as runtime:
            ledger = runtime.ledger
            ledger.add_auditor(ADMIN, AUDITOR)
            paper_id = ledger.submit(ALICE, "T", "A", "cid", digest("doc"))
            ledger.approve(AUDITOR, paper_id)

        async with ledger_runtime(settings) as runtime:
            ledger = runtime.ledger
            assert ledger.paper_count == 1
            assert ledger.is_auditor(AUDITOR)
            assert ledger.get_paper_info(paper_id).status == PaperStatus.PUBLISHED
            assert ledger.is_content_hash_used(digest("doc"))
            assert ledger.submit(BOB, "T2", "B", "cid2", digest("doc2")) == 2

    @pytest.mark.asyncio
    async def test_explicit_checkpoint(self, settings):
        """Test checkpoint can be taken while running."""
        async with ledger_runtime(settings) as runtime:
            runtime.ledger.submit(ALICE, "T", "A", "cid", digest("doc"))
            await runtime.checkpoint()
            runtime.ledger.submit(ALICE, "T", "A", "cid", digest("doc-2"))

        async with ledger_runtime(settings) as runtime:
            assert runtime.ledger.paper_count == 2

    @pytest.mark.asyncio
    async def test_persisted_admin_wins(self, settings):
        """Test a different configured admin does not replace the stored one."""
        async with ledger_runtime(settings):
            pass

        changed = settings.model_copy(update={"admin_identity": BOB})
        async with ledger_runtime(changed) as runtime:
            assert runtime.ledger.admin == ADMIN

    @pytest.mark.asyncio
    async def test_without_persistence(self, settings):
        """Test the runtime works purely in memory when persistence is off."""
        in_memory = settings.model_copy(update={"persistence_enabled": False})

        async with ledger_runtime(in_memory) as runtime:
            runtime.ledger.submit(ALICE, "T", "A", "cid", digest("doc"))

        async with ledger_runtime(in_memory) as runtime:
            assert runtime.ledger.paper_count == 0

    @pytest.mark.asyncio
    async def test_missing_admin_rejected(self, settings):
        """Test a fresh ledger needs a configured administrator."""
        no_admin = settings.model_copy(
            update={"persistence_enabled": False, "admin_identity": ""}
        )

        with pytest.raises(InvalidArgumentError):
            async with ledger_runtime(no_admin):
                pass

    @pytest.mark.asyncio
    async def test_events_stay_queued_without_relay(self, settings):
        """Test events accumulate in the outbox when no queue is configured."""
        async with ledger_runtime(settings) as runtime:
            assert runtime.relay is None
            runtime.ledger.submit(ALICE, "T", "A", "cid", digest("doc"))
            assert await runtime.flush_events() == 0
            assert len(runtime.outbox) == 1

    @pytest.mark.asyncio
    async def test_shutdown_flushes_events(self, settings, monkeypatch):
        """Test pending events are relayed when the runtime exits."""
        sqs_client = MagicMock()
        sqs_client.is_fifo = False
        sqs_client.send_message = AsyncMock(return_value="msg-1")
        monkeypatch.setattr(main_module, "build_sqs_client", lambda _settings: sqs_client)

        async with ledger_runtime(settings) as runtime:
            runtime.ledger.add_auditor(ADMIN, AUDITOR)
            runtime.ledger.submit(ALICE, "T", "A", "cid", digest("doc"))

        sent = [call.args[0].event_type for call in sqs_client.send_message.call_args_list]
        assert sent == ["AuditorAdded", "PaperSubmitted"]
        assert len(runtime.outbox) == 0


class TestBuildSqsClient:
    """Tests for build_sqs_client."""

    def test_disabled_without_queue(self, settings):
        assert build_sqs_client(settings) is None

    def test_uses_configured_queue(self, settings):
        configured = settings.model_copy(
            update={
                "sqs_queue_url": "http://localhost:4566/000/ledger.fifo",
                "sqs_region": "eu-west-1",
            }
        )
        client = build_sqs_client(configured)

        assert client.queue_url == "http://localhost:4566/000/ledger.fifo"
        assert client.region == "eu-west-1"
        assert client.is_fifo
