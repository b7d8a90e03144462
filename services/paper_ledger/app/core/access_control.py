"""Administrator and auditor membership."""

import threading
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Callable

from services.paper_ledger.app.core.normalizers import is_null_identity, normalize_identity
from services.paper_ledger.app.errors import (
    AlreadyExistsError,
    NotFoundError,
    UnauthorizedError,
)
from services.paper_ledger.app.events.publisher import LedgerEventPublisher
from shared.schemas.events import utc_now
from shared.utils.logging import get_logger

logger = get_logger(__name__)


class AccessControlRegistry:
    """Owns the administrator identity and the mutable auditor set.

    Auditor membership changes only through add_auditor/remove_auditor, both
    restricted to the administrator. Redundant adds and removes are rejected
    rather than ignored.
    """

    def __init__(
        self,
        admin: str,
        publisher: LedgerEventPublisher | None = None,
        lock: AbstractContextManager | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the registry.

        Args:
            admin: Administrator identity
            publisher: Event publisher for membership notifications
            lock: Lock shared with the owning ledger
            clock: Timestamp source for notifications
        """
        self._admin = normalize_identity(admin)
        self._auditors: set[str] = set()
        self._publisher = publisher
        self._lock = lock or threading.RLock()
        self._clock = clock

    @property
    def admin(self) -> str:
        """The administrator identity."""
        return self._admin

    def auditors(self) -> frozenset[str]:
        """Return a copy of the current auditor set."""
        with self._lock:
            return frozenset(self._auditors)

    def is_auditor(self, identity: str | None) -> bool:
        """Check auditor membership. Null identities are never auditors."""
        if is_null_identity(identity):
            return False
        return identity.strip() in self._auditors

    def is_authorized(self, identity: str | None) -> bool:
        """Check whether an identity may approve or reject papers."""
        if is_null_identity(identity):
            return False
        return identity.strip() == self._admin or self.is_auditor(identity)

    def require_admin(self, caller: str | None, operation: str) -> None:
        """Raise unless the caller is the administrator.

        Raises:
            UnauthorizedError: If caller is not the administrator
        """
        if is_null_identity(caller) or caller.strip() != self._admin:
            raise UnauthorizedError(caller, f"Only the administrator may {operation}")

    def add_auditor(self, caller: str, identity: str | None) -> None:
        """Grant auditor rights to an identity.

        Args:
            caller: Identity performing the operation (must be the administrator)
            identity: Identity to add

        Raises:
            UnauthorizedError: Caller is not the administrator
            InvalidArgumentError: Identity is null
            AlreadyExistsError: Identity is already an auditor
        """
        with self._lock:
            self.require_admin(caller, "add auditors")
            auditor = normalize_identity(identity)
            if auditor in self._auditors:
                raise AlreadyExistsError(f"{auditor} is already an auditor")

            self._auditors.add(auditor)
            logger.info("auditor_added", auditor=auditor)
            if self._publisher is not None:
                self._publisher.publish_auditor_added(
                    auditor=auditor, admin=self._admin, timestamp=self._clock()
                )

    def remove_auditor(self, caller: str, identity: str | None) -> None:
        """Revoke auditor rights from an identity.

        Raises:
            UnauthorizedError: Caller is not the administrator
            InvalidArgumentError: Identity is null
            NotFoundError: Identity is not currently an auditor
        """
        with self._lock:
            self.require_admin(caller, "remove auditors")
            auditor = normalize_identity(identity)
            if auditor not in self._auditors:
                raise NotFoundError(f"{auditor} is not an auditor")

            self._auditors.discard(auditor)
            logger.info("auditor_removed", auditor=auditor)
            if self._publisher is not None:
                self._publisher.publish_auditor_removed(
                    auditor=auditor, admin=self._admin, timestamp=self._clock()
                )

    def restore(self, auditors: list[str]) -> None:
        """Replace the auditor set, used when loading persisted state."""
        with self._lock:
            self._auditors = {normalize_identity(a) for a in auditors}

    def clear(self) -> None:
        """Drop every auditor. The administrator is kept."""
        with self._lock:
            self._auditors.clear()
