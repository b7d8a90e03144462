"""Database models and repository."""

from services.paper_ledger.app.db.models import (
    AuditorModel,
    Base,
    LedgerCounterModel,
    PaperModel,
    UsedContentHashModel,
    VersionModel,
)
from services.paper_ledger.app.db.repository import LedgerRepository

__all__ = [
    "AuditorModel",
    "Base",
    "LedgerCounterModel",
    "PaperModel",
    "UsedContentHashModel",
    "VersionModel",
    "LedgerRepository",
]
