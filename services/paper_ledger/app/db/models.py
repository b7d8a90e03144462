"""SQLAlchemy models for the Paper Ledger."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class LedgerCounterModel(Base):
    """Single-row table holding the paper id counter and the admin identity."""

    __tablename__ = "ledger_counter"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    admin: Mapped[str] = mapped_column(String(255), nullable=False)
    paper_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class PaperModel(Base):
    """SQLAlchemy model for ledger_papers table."""

    __tablename__ = "ledger_papers"

    paper_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    # Stored as the external ordinal (0=pending, 1=published, 2=rejected, 3=removed)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    versions: Mapped[list["VersionModel"]] = relationship(
        "VersionModel",
        back_populates="paper",
        cascade="all, delete-orphan",
        order_by="VersionModel.version_index",
    )

    __table_args__ = (
        Index("idx_ledger_papers_owner", "owner"),
        Index("idx_ledger_papers_status", "status"),
    )


class VersionModel(Base):
    """SQLAlchemy model for ledger_versions table."""

    __tablename__ = "ledger_versions"

    paper_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ledger_papers.paper_id", ondelete="CASCADE"),
        primary_key=True,
    )
    version_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    content_id: Mapped[str] = mapped_column(Text, nullable=False)
    content_hash: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    signature: Mapped[bytes] = mapped_column(LargeBinary, default=b"", nullable=False)

    paper: Mapped["PaperModel"] = relationship("PaperModel", back_populates="versions")

    __table_args__ = (Index("idx_ledger_versions_content_hash", "content_hash"),)


class AuditorModel(Base):
    """SQLAlchemy model for ledger_auditors table (identity -> membership flag)."""

    __tablename__ = "ledger_auditors"

    identity: Mapped[str] = mapped_column(String(255), primary_key=True)
    is_auditor: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class UsedContentHashModel(Base):
    """SQLAlchemy model for ledger_used_content_hashes table (hash -> used flag)."""

    __tablename__ = "ledger_used_content_hashes"

    content_hash: Mapped[bytes] = mapped_column(LargeBinary(32), primary_key=True)
    used: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    claimed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Preserves claim order across save/load
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
