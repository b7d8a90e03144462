"""Database repository for ledger snapshots."""

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from services.paper_ledger.app.db.models import (
    AuditorModel,
    LedgerCounterModel,
    PaperModel,
    UsedContentHashModel,
    VersionModel,
)
from shared.schemas.paper import (
    LedgerSnapshot,
    PaperRecord,
    PaperStatus,
    UsedContentHash,
    Version,
)
from shared.utils.logging import get_logger

logger = get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LedgerRepository:
    """Repository that persists and loads the full ledger state."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def clear(self) -> None:
        """Delete every persisted ledger row."""
        for model in (
            VersionModel,
            PaperModel,
            AuditorModel,
            UsedContentHashModel,
            LedgerCounterModel,
        ):
            await self.session.execute(delete(model))
        await self.session.flush()

    async def save(self, snapshot: LedgerSnapshot) -> None:
        """Replace the persisted state with a snapshot.

        The caller owns the transaction; nothing is committed here.

        Args:
            snapshot: Ledger state to persist
        """
        await self.clear()

        self.session.add(
            LedgerCounterModel(id=1, admin=snapshot.admin, paper_count=snapshot.paper_count)
        )
        for record in snapshot.papers:
            self.session.add(
                PaperModel(
                    paper_id=record.paper_id,
                    owner=record.owner,
                    title=record.title,
                    author=record.author,
                    status=int(record.status),
                    versions=[
                        VersionModel(
                            paper_id=record.paper_id,
                            version_index=index,
                            content_id=version.content_id,
                            content_hash=version.content_hash,
                            created_at=version.created_at,
                            signature=version.signature,
                        )
                        for index, version in enumerate(record.versions)
                    ],
                )
            )
        for identity in snapshot.auditors:
            self.session.add(AuditorModel(identity=identity, is_auditor=True))
        for position, used in enumerate(snapshot.used_content_hashes):
            self.session.add(
                UsedContentHashModel(
                    content_hash=used.content_hash,
                    used=True,
                    claimed_by=used.claimed_by,
                    position=position,
                )
            )

        await self.session.flush()
        logger.info(
            "ledger_snapshot_saved",
            paper_count=snapshot.paper_count,
            auditor_count=len(snapshot.auditors),
        )

    async def load(self) -> LedgerSnapshot | None:
        """Load the persisted state.

        Returns:
            Snapshot, or None if no ledger was ever saved
        """
        counter = await self.session.get(LedgerCounterModel, 1)
        if counter is None:
            return None

        papers_result = await self.session.execute(
            select(PaperModel)
            .options(selectinload(PaperModel.versions))
            .order_by(PaperModel.paper_id)
        )
        auditors_result = await self.session.execute(
            select(AuditorModel.identity)
            .where(AuditorModel.is_auditor.is_(True))
            .order_by(AuditorModel.identity)
        )
        hashes_result = await self.session.execute(
            select(UsedContentHashModel)
            .where(UsedContentHashModel.used.is_(True))
            .order_by(UsedContentHashModel.position)
        )

        return LedgerSnapshot(
            admin=counter.admin,
            paper_count=counter.paper_count,
            papers=[
                PaperRecord(
                    paper_id=paper.paper_id,
                    owner=paper.owner,
                    title=paper.title,
                    author=paper.author,
                    status=PaperStatus(paper.status),
                    versions=[
                        Version(
                            content_id=version.content_id,
                            content_hash=version.content_hash,
                            created_at=as_utc(version.created_at),
                            signature=version.signature,
                        )
                        for version in paper.versions
                    ],
                )
                for paper in papers_result.scalars().all()
            ],
            auditors=list(auditors_result.scalars().all()),
            used_content_hashes=[
                UsedContentHash(content_hash=row.content_hash, claimed_by=row.claimed_by)
                for row in hashes_result.scalars().all()
            ],
        )
