"""Shared Pydantic schemas for the paper ledger services."""

from shared.schemas.paper import (
    LedgerSnapshot,
    PaperInfo,
    PaperRecord,
    PaperStatus,
    UsedContentHash,
    Version,
)
from shared.schemas.events import (
    AuditorAddedEvent,
    AuditorRemovedEvent,
    BaseEvent,
    LedgerEvent,
    PaperApprovedEvent,
    PaperRejectedEvent,
    PaperRemovedEvent,
    PaperSubmittedEvent,
    VersionAddedEvent,
)

__all__ = [
    "LedgerSnapshot",
    "PaperInfo",
    "PaperRecord",
    "PaperStatus",
    "UsedContentHash",
    "Version",
    "AuditorAddedEvent",
    "AuditorRemovedEvent",
    "BaseEvent",
    "LedgerEvent",
    "PaperApprovedEvent",
    "PaperRejectedEvent",
    "PaperRemovedEvent",
    "PaperSubmittedEvent",
    "VersionAddedEvent",
]
