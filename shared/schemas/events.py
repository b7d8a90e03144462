"""Event schemas emitted by the paper ledger."""

from datetime import datetime, timezone
from typing import Literal, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class BaseEvent(BaseModel):
    """Base event schema."""

    event_id: UUID = Field(default_factory=uuid4)
    correlation_id: str = Field(default="", description="Request correlation ID for tracing")
    timestamp: datetime = Field(default_factory=utc_now)


class PaperSubmittedEvent(BaseEvent):
    """Event published when a paper is submitted, carrying the original version."""

    event_type: Literal["PaperSubmitted"] = "PaperSubmitted"
    paper_id: int
    owner: str
    title: str
    author: str
    version_index: int = 0
    content_id: str
    content_hash: str = Field(..., description="Hex digest of the original file")
    signature: str = Field(default="", description="Hex encoded signature blob")
    created_at: datetime


class PaperApprovedEvent(BaseEvent):
    """Event published when an auditor approves a pending paper."""

    event_type: Literal["PaperApproved"] = "PaperApproved"
    paper_id: int
    auditor: str
    content_hash: str


class PaperRejectedEvent(BaseEvent):
    """Event published when an auditor rejects a pending paper."""

    event_type: Literal["PaperRejected"] = "PaperRejected"
    paper_id: int
    auditor: str


class PaperRemovedEvent(BaseEvent):
    """Event published when an owner removes their paper."""

    event_type: Literal["PaperRemoved"] = "PaperRemoved"
    paper_id: int
    owner: str


class VersionAddedEvent(BaseEvent):
    """Event published when a new version is appended to a published paper."""

    event_type: Literal["VersionAdded"] = "VersionAdded"
    paper_id: int
    owner: str
    version_index: int
    content_id: str
    content_hash: str
    created_at: datetime


class AuditorAddedEvent(BaseEvent):
    """Event published when the administrator grants auditor rights."""

    event_type: Literal["AuditorAdded"] = "AuditorAdded"
    auditor: str
    admin: str


class AuditorRemovedEvent(BaseEvent):
    """Event published when the administrator revokes auditor rights."""

    event_type: Literal["AuditorRemoved"] = "AuditorRemoved"
    auditor: str
    admin: str


LedgerEvent = Union[
    PaperSubmittedEvent,
    PaperApprovedEvent,
    PaperRejectedEvent,
    PaperRemovedEvent,
    VersionAddedEvent,
    AuditorAddedEvent,
    AuditorRemovedEvent,
]
