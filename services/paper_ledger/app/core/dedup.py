"""Deduplication guard for published original content."""

import threading
from contextlib import AbstractContextManager

from services.paper_ledger.app.errors import ConflictError
from shared.utils.logging import get_logger

logger = get_logger(__name__)


class ContentHashRegistry:
    """Set of content hashes reserved by approved original versions.

    A hash is claimed exactly once, when the paper whose version 0 carries it
    is approved, and is never released afterwards (removing the paper keeps
    the reservation).
    """

    def __init__(self, lock: AbstractContextManager | None = None):
        self._claims: dict[bytes, int | None] = {}
        self._lock = lock or threading.RLock()

    def __contains__(self, content_hash: bytes) -> bool:
        return content_hash in self._claims

    def __len__(self) -> int:
        return len(self._claims)

    def is_used(self, content_hash: bytes) -> bool:
        """Check whether a content hash is already reserved."""
        return content_hash in self._claims

    def claimant_of(self, content_hash: bytes) -> int | None:
        """Return the paper id that reserved a hash, or None."""
        return self._claims.get(content_hash)

    def check_available(self, content_hash: bytes) -> None:
        """Raise if the hash is already reserved.

        Raises:
            ConflictError: If another paper already claimed this hash
        """
        if content_hash in self._claims:
            claimed_by = self._claims[content_hash]
            logger.info(
                "duplicate_found",
                content_hash=content_hash.hex()[:16] + "...",
                claimed_by=claimed_by,
            )
            raise ConflictError(content_hash, claimed_by)

    def claim(self, content_hash: bytes, paper_id: int) -> None:
        """Reserve a hash for a paper. Check and insert happen under one lock.

        Raises:
            ConflictError: If another paper already claimed this hash
        """
        with self._lock:
            self.check_available(content_hash)
            self._claims[content_hash] = paper_id

    def items(self) -> list[tuple[bytes, int | None]]:
        """Return (hash, claimant) pairs in claim order."""
        with self._lock:
            return list(self._claims.items())

    def restore(self, claims: list[tuple[bytes, int | None]]) -> None:
        """Replace all reservations, used when loading persisted state."""
        with self._lock:
            self._claims = dict(claims)

    def clear(self) -> None:
        """Drop all reservations."""
        with self._lock:
            self._claims.clear()
