"""Paper ledger: submission, review, removal and versioning of papers."""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterator

from services.paper_ledger.app.clock import MonotonicClock
from services.paper_ledger.app.core.access_control import AccessControlRegistry
from services.paper_ledger.app.core.dedup import ContentHashRegistry
from services.paper_ledger.app.core.normalizers import (
    is_null_identity,
    normalize_content_hash,
    normalize_content_id,
    normalize_identity,
    normalize_signature,
)
from services.paper_ledger.app.core.state_machine import StateMachine
from services.paper_ledger.app.errors import (
    InvalidArgumentError,
    LedgerError,
    UnauthorizedError,
)
from services.paper_ledger.app.events.publisher import LedgerEventPublisher
from shared.schemas.paper import (
    LedgerSnapshot,
    PaperInfo,
    PaperRecord,
    PaperStatus,
    UsedContentHash,
    Version,
)
from shared.utils.logging import get_logger
from shared.utils.metrics import create_counter, create_histogram

logger = get_logger(__name__)

# Metrics
LEDGER_OPERATIONS = create_counter(
    "ledger_operations_total",
    "Total ledger operations by outcome",
    ["operation", "outcome"],
)
LEDGER_OPERATION_LATENCY = create_histogram(
    "ledger_operation_duration_seconds",
    "Ledger operation latency in seconds",
    ["operation"],
)


@dataclass
class _Paper:
    """Mutable paper record. Never handed out; queries return copies."""

    owner: str
    title: str
    author: str
    versions: list[Version]
    status: PaperStatus = PaperStatus.PENDING

    def info(self, paper_id: int) -> PaperInfo:
        return PaperInfo(
            paper_id=paper_id,
            owner=self.owner,
            title=self.title,
            author=self.author,
            status=self.status,
            version_count=len(self.versions),
        )


@dataclass
class _Restore:
    """Validated state assembled from a snapshot before it is installed."""

    papers: dict[int, _Paper] = field(default_factory=dict)
    claims: list[tuple[bytes, int | None]] = field(default_factory=list)


class PaperLedger:
    """Registry of papers with an auditor review workflow.

    Every mutating operation takes the caller identity as its first argument
    and runs under a single lock, so id allocation and the approve-time
    content hash check-and-claim are atomic. All preconditions are checked
    before the first mutation: a failed call changes nothing and emits
    nothing.
    """

    def __init__(
        self,
        admin: str,
        publisher: LedgerEventPublisher | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize an empty ledger.

        Args:
            admin: Administrator identity
            publisher: Event publisher; events are dropped when None
            clock: Timestamp source, defaults to a monotonic UTC clock
        """
        self._lock = threading.RLock()
        self._clock = clock or MonotonicClock()
        self.publisher = publisher
        self.access = AccessControlRegistry(
            admin, publisher=publisher, lock=self._lock, clock=self._clock
        )
        self.content_hashes = ContentHashRegistry(lock=self._lock)
        self._papers: dict[int, _Paper] = {}
        self._paper_count = 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _track(self, operation: str, **fields: Any) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        except LedgerError as e:
            LEDGER_OPERATIONS.labels(operation=operation, outcome=e.code).inc()
            logger.warning(
                "operation_rejected",
                operation=operation,
                error_code=e.code,
                error=e.message,
                **fields,
            )
            raise
        else:
            LEDGER_OPERATIONS.labels(operation=operation, outcome="ok").inc()
        finally:
            LEDGER_OPERATION_LATENCY.labels(operation=operation).observe(
                time.perf_counter() - start
            )

    def _get_paper(self, paper_id: Any) -> _Paper:
        if (
            isinstance(paper_id, bool)
            or not isinstance(paper_id, int)
            or not 1 <= paper_id <= self._paper_count
        ):
            raise InvalidArgumentError(f"Invalid paper id: {paper_id!r}")
        return self._papers[paper_id]

    def _require_authorized(self, caller: str | None, operation: str) -> str:
        if not self.access.is_authorized(caller):
            raise UnauthorizedError(caller, f"Only auditors may {operation} papers")
        return caller.strip()

    def _require_owner(self, caller: str | None, paper: _Paper, paper_id: int) -> str:
        if is_null_identity(caller) or caller.strip() != paper.owner:
            raise UnauthorizedError(caller, f"Only the owner of paper {paper_id} may do this")
        return paper.owner

    def _build_version(self, content_id: Any, content_hash: Any, signature: Any) -> Version:
        return Version(
            content_id=normalize_content_id(content_id),
            content_hash=normalize_content_hash(content_hash),
            created_at=self._clock(),
            signature=normalize_signature(signature),
        )

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    @property
    def admin(self) -> str:
        """The administrator identity."""
        return self.access.admin

    def add_auditor(self, caller: str, identity: str | None) -> None:
        """Grant auditor rights (administrator only)."""
        with self._track("add_auditor"):
            self.access.add_auditor(caller, identity)

    def remove_auditor(self, caller: str, identity: str | None) -> None:
        """Revoke auditor rights (administrator only)."""
        with self._track("remove_auditor"):
            self.access.remove_auditor(caller, identity)

    def is_auditor(self, identity: str | None) -> bool:
        """Check auditor membership."""
        return self.access.is_auditor(identity)

    def is_authorized(self, identity: str | None) -> bool:
        """Check whether an identity may approve or reject papers."""
        return self.access.is_authorized(identity)

    def auditors(self) -> frozenset[str]:
        """Return a copy of the auditor set."""
        return self.access.auditors()

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    def submit(
        self,
        caller: str,
        title: str,
        author: str,
        content_id: str,
        content_hash: bytes | str,
        signature: bytes | str = b"",
    ) -> int:
        """Submit a new paper for review.

        Any identity may submit. No deduplication happens here; the original
        content hash is only checked when the paper is approved.

        Args:
            caller: Submitting identity, becomes the paper owner
            title: Paper title
            author: Paper author
            content_id: Pointer to the file in the content store
            content_hash: 32-byte digest of the file (bytes or hex)
            signature: Optional opaque signature blob

        Returns:
            The new paper id

        Raises:
            InvalidArgumentError: Null caller or malformed inputs
        """
        with self._track("submit"), self._lock:
            owner = normalize_identity(caller)
            if not isinstance(title, str) or not isinstance(author, str):
                raise InvalidArgumentError("Title and author must be strings")
            version = self._build_version(content_id, content_hash, signature)

            paper_id = self._paper_count + 1
            self._papers[paper_id] = _Paper(
                owner=owner,
                title=title,
                author=author,
                versions=[version],
            )
            self._paper_count = paper_id

            logger.info(
                "paper_submitted",
                paper_id=paper_id,
                owner=owner,
                content_hash=version.content_hash.hex()[:16] + "...",
            )
            if self.publisher is not None:
                self.publisher.publish_paper_submitted(
                    paper_id=paper_id,
                    owner=owner,
                    title=title,
                    author=author,
                    version=version,
                )
            return paper_id

    def approve(self, caller: str, paper_id: int) -> None:
        """Publish a pending paper and reserve its original content hash.

        Raises:
            UnauthorizedError: Caller is neither administrator nor auditor
            InvalidArgumentError: Unknown paper id
            InvalidStateError: Paper is not pending
            ConflictError: Original content hash already reserved
        """
        with self._track("approve", paper_id=paper_id), self._lock:
            auditor = self._require_authorized(caller, "approve")
            paper = self._get_paper(paper_id)
            StateMachine.validate_transition(paper.status, PaperStatus.PUBLISHED)

            original_hash = paper.versions[0].content_hash
            self.content_hashes.claim(original_hash, paper_id)
            paper.status = PaperStatus.PUBLISHED

            logger.info("paper_approved", paper_id=paper_id, auditor=auditor)
            if self.publisher is not None:
                self.publisher.publish_paper_approved(
                    paper_id=paper_id,
                    auditor=auditor,
                    content_hash=original_hash,
                    timestamp=self._clock(),
                )

    def reject(self, caller: str, paper_id: int) -> None:
        """Reject a pending paper.

        Raises:
            UnauthorizedError: Caller is neither administrator nor auditor
            InvalidArgumentError: Unknown paper id
            InvalidStateError: Paper is not pending
        """
        with self._track("reject", paper_id=paper_id), self._lock:
            auditor = self._require_authorized(caller, "reject")
            paper = self._get_paper(paper_id)
            StateMachine.validate_transition(paper.status, PaperStatus.REJECTED)

            paper.status = PaperStatus.REJECTED

            logger.info("paper_rejected", paper_id=paper_id, auditor=auditor)
            if self.publisher is not None:
                self.publisher.publish_paper_rejected(
                    paper_id=paper_id,
                    auditor=auditor,
                    timestamp=self._clock(),
                )

    def remove(self, caller: str, paper_id: int) -> None:
        """Remove a paper (owner only). The content hash stays reserved.

        Raises:
            InvalidArgumentError: Unknown paper id
            UnauthorizedError: Caller is not the owner
            InvalidStateError: Paper is already removed
        """
        with self._track("remove", paper_id=paper_id), self._lock:
            paper = self._get_paper(paper_id)
            owner = self._require_owner(caller, paper, paper_id)
            StateMachine.validate_transition(paper.status, PaperStatus.REMOVED)

            paper.status = PaperStatus.REMOVED

            logger.info("paper_removed", paper_id=paper_id, owner=owner)
            if self.publisher is not None:
                self.publisher.publish_paper_removed(
                    paper_id=paper_id,
                    owner=owner,
                    timestamp=self._clock(),
                )

    # Alias matching the external operation name
    remove_paper = remove

    def add_version(
        self,
        caller: str,
        paper_id: int,
        content_id: str,
        content_hash: bytes | str,
        signature: bytes | str = b"",
    ) -> int:
        """Append a version to a published paper (owner only).

        The new content hash is not checked against or added to the
        reserved set.

        Returns:
            Index of the new version

        Raises:
            InvalidArgumentError: Unknown paper id or malformed inputs
            UnauthorizedError: Caller is not the owner
            InvalidStateError: Paper is not published
        """
        with self._track("add_version", paper_id=paper_id), self._lock:
            paper = self._get_paper(paper_id)
            owner = self._require_owner(caller, paper, paper_id)
            StateMachine.validate_can_add_version(paper.status)
            version = self._build_version(content_id, content_hash, signature)

            paper.versions.append(version)
            index = len(paper.versions) - 1

            logger.info("version_added", paper_id=paper_id, version_index=index)
            if self.publisher is not None:
                self.publisher.publish_version_added(
                    paper_id=paper_id,
                    owner=owner,
                    version_index=index,
                    version=version,
                )
            return index

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def paper_count(self) -> int:
        """Number of papers ever submitted; also the highest valid id."""
        return self._paper_count

    def get_paper_info(self, paper_id: int) -> PaperInfo:
        """Return a read-only view of a paper.

        Raises:
            InvalidArgumentError: Unknown paper id
        """
        with self._lock:
            return self._get_paper(paper_id).info(paper_id)

    def get_version(self, paper_id: int, index: int) -> Version:
        """Return one version of a paper.

        Raises:
            InvalidArgumentError: Unknown paper id or version index
        """
        with self._lock:
            paper = self._get_paper(paper_id)
            if (
                isinstance(index, bool)
                or not isinstance(index, int)
                or not 0 <= index < len(paper.versions)
            ):
                raise InvalidArgumentError(
                    f"Invalid version index {index!r} for paper {paper_id}"
                )
            return paper.versions[index]

    def get_versions(self, paper_id: int) -> tuple[Version, ...]:
        """Return the full version history, oldest first."""
        with self._lock:
            return tuple(self._get_paper(paper_id).versions)

    def get_latest_version(self, paper_id: int) -> Version:
        """Return the most recent version of a paper."""
        with self._lock:
            return self._get_paper(paper_id).versions[-1]

    def list_papers(
        self,
        status: PaperStatus | None = None,
        owner: str | None = None,
    ) -> list[PaperInfo]:
        """List papers in id order, optionally filtered by status and owner.

        Raises:
            InvalidArgumentError: Owner filter is given but null
        """
        owner = normalize_identity(owner) if owner is not None else None
        with self._lock:
            return [
                paper.info(paper_id)
                for paper_id, paper in sorted(self._papers.items())
                if (status is None or paper.status == status)
                and (owner is None or paper.owner == owner)
            ]

    def is_content_hash_used(self, content_hash: bytes | str) -> bool:
        """Check whether a content hash is reserved by an approved paper."""
        return self.content_hashes.is_used(normalize_content_hash(content_hash))

    def claimant_of(self, content_hash: bytes | str) -> int | None:
        """Return the paper id whose approval reserved a content hash."""
        return self.content_hashes.claimant_of(normalize_content_hash(content_hash))

    # ------------------------------------------------------------------
    # State lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop all papers, reservations and auditors. The admin is kept."""
        with self._lock:
            self._papers.clear()
            self._paper_count = 0
            self.content_hashes.clear()
            self.access.clear()
            logger.info("ledger_reset")

    def snapshot(self) -> LedgerSnapshot:
        """Export the complete logical state."""
        with self._lock:
            return LedgerSnapshot(
                admin=self.admin,
                paper_count=self._paper_count,
                papers=[
                    PaperRecord(
                        paper_id=paper_id,
                        owner=paper.owner,
                        title=paper.title,
                        author=paper.author,
                        status=paper.status,
                        versions=list(paper.versions),
                    )
                    for paper_id, paper in sorted(self._papers.items())
                ],
                auditors=sorted(self.access.auditors()),
                used_content_hashes=[
                    UsedContentHash(content_hash=content_hash, claimed_by=claimed_by)
                    for content_hash, claimed_by in self.content_hashes.items()
                ],
            )

    @staticmethod
    def _validate_snapshot(snapshot: LedgerSnapshot) -> _Restore:
        restore = _Restore()

        ids = [record.paper_id for record in snapshot.papers]
        if sorted(ids) != list(range(1, snapshot.paper_count + 1)):
            raise InvalidArgumentError(
                f"Paper ids must be exactly 1..{snapshot.paper_count}, got {sorted(ids)}"
            )

        for record in snapshot.papers:
            if not record.versions:
                raise InvalidArgumentError(f"Paper {record.paper_id} has no versions")
            restore.papers[record.paper_id] = _Paper(
                owner=normalize_identity(record.owner),
                title=record.title,
                author=record.author,
                versions=list(record.versions),
                status=record.status,
            )

        claimed_by: dict[bytes, int | None] = {}
        for used in snapshot.used_content_hashes:
            if used.content_hash in claimed_by:
                raise InvalidArgumentError("Content hash reserved twice")
            claimed_by[used.content_hash] = used.claimed_by
            if used.claimed_by is not None:
                paper = restore.papers.get(used.claimed_by)
                if (
                    paper is None
                    or paper.status not in (PaperStatus.PUBLISHED, PaperStatus.REMOVED)
                    or paper.versions[0].content_hash != used.content_hash
                ):
                    raise InvalidArgumentError(
                        f"Reservation claimed by paper {used.claimed_by} does not match its original version"
                    )
            restore.claims.append((used.content_hash, used.claimed_by))

        # Each published original holds its own reservation
        published_by: dict[bytes, int] = {}
        for paper_id, paper in sorted(restore.papers.items()):
            if paper.status != PaperStatus.PUBLISHED:
                continue
            original_hash = paper.versions[0].content_hash
            if original_hash not in claimed_by:
                raise InvalidArgumentError(
                    f"Published paper {paper_id} has no content hash reservation"
                )
            if claimed_by[original_hash] not in (paper_id, None):
                raise InvalidArgumentError(
                    f"Published paper {paper_id} shares its content hash with "
                    f"paper {claimed_by[original_hash]}"
                )
            if original_hash in published_by:
                raise InvalidArgumentError(
                    f"Published papers {published_by[original_hash]} and {paper_id} "
                    "share one content hash"
                )
            published_by[original_hash] = paper_id

        return restore

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        publisher: LedgerEventPublisher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "PaperLedger":
        """Build a ledger from exported state. Restoring emits no events.

        Raises:
            InvalidArgumentError: If the snapshot violates a ledger invariant
        """
        restore = cls._validate_snapshot(snapshot)

        ledger = cls(snapshot.admin, publisher=publisher, clock=clock)
        ledger._papers = restore.papers
        ledger._paper_count = snapshot.paper_count
        ledger.content_hashes.restore(restore.claims)
        ledger.access.restore(snapshot.auditors)

        logger.info(
            "ledger_restored",
            paper_count=snapshot.paper_count,
            auditor_count=len(snapshot.auditors),
            used_hash_count=len(restore.claims),
        )
        return ledger
