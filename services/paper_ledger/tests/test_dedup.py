"""Tests for the content hash reservation registry."""

import threading

import pytest

from services.paper_ledger.app.core.dedup import ContentHashRegistry
from services.paper_ledger.app.errors import ConflictError
from services.paper_ledger.tests.factories import digest


class TestContentHashRegistry:
    """Tests for ContentHashRegistry."""

    def test_claim_reserves_hash(self):
        """Test a claimed hash is used and remembers its claimant."""
        registry = ContentHashRegistry()
        registry.claim(digest("a"), 1)

        assert registry.is_used(digest("a"))
        assert digest("a") in registry
        assert registry.claimant_of(digest("a")) == 1
        assert len(registry) == 1

    def test_second_claim_conflicts(self):
        """Test a reserved hash cannot be claimed again."""
        registry = ContentHashRegistry()
        registry.claim(digest("a"), 1)

        with pytest.raises(ConflictError) as exc_info:
            registry.claim(digest("a"), 2)

        assert exc_info.value.claimed_by == 1
        assert registry.claimant_of(digest("a")) == 1

    def test_uses_shared_lock(self):
        """Test the registry runs under a lock supplied by its owner."""
        lock = threading.RLock()
        registry = ContentHashRegistry(lock=lock)

        with lock:
            registry.claim(digest("a"), 1)

        assert registry._lock is lock
        assert registry.items() == [(digest("a"), 1)]

    def test_restore_and_clear(self):
        """Test restore replaces claims in order and clear drops them."""
        registry = ContentHashRegistry()
        registry.restore([(digest("b"), None), (digest("a"), 3)])

        assert registry.items() == [(digest("b"), None), (digest("a"), 3)]

        registry.clear()
        assert len(registry) == 0
