"""Paper and version schema models."""

from datetime import datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

CONTENT_HASH_SIZE = 32


class PaperStatus(IntEnum):
    """Paper lifecycle status.

    The ordinals are part of the external contract and must not change.
    """

    PENDING = 0
    PUBLISHED = 1
    REJECTED = 2
    REMOVED = 3


def content_hash_from_any(value: Any) -> bytes:
    """Coerce a content hash to its 32-byte form.

    Accepts raw bytes or a hex string with an optional ``0x`` prefix.

    Raises:
        ValueError: If the value is not a 32-byte digest
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
    elif isinstance(value, str):
        text = value.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise ValueError(f"content hash is not valid hex: {value!r}") from e
    else:
        raise ValueError(f"unsupported content hash type: {type(value).__name__}")

    if len(raw) != CONTENT_HASH_SIZE:
        raise ValueError(
            f"content hash must be {CONTENT_HASH_SIZE} bytes, got {len(raw)}"
        )
    return raw


def signature_from_any(value: Any) -> bytes:
    """Coerce an optional signature blob to bytes (hex strings are decoded)."""
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        text = value.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        return bytes.fromhex(text)
    raise ValueError(f"unsupported signature type: {type(value).__name__}")


class Version(BaseModel):
    """One immutable entry of a paper's version history."""

    model_config = ConfigDict(frozen=True)

    content_id: str = Field(..., min_length=1, description="Pointer into the content store")
    content_hash: bytes = Field(..., description="SHA-256 digest of the raw file bytes")
    created_at: datetime
    signature: bytes = b""

    @field_validator("content_hash", mode="before")
    @classmethod
    def _coerce_content_hash(cls, value: Any) -> bytes:
        return content_hash_from_any(value)

    @field_validator("signature", mode="before")
    @classmethod
    def _coerce_signature(cls, value: Any) -> bytes:
        return signature_from_any(value)

    @field_serializer("content_hash", "signature", when_used="json")
    def _hex(self, value: bytes) -> str:
        return value.hex()


class PaperInfo(BaseModel):
    """Read-only view of a paper returned by queries."""

    model_config = ConfigDict(frozen=True)

    paper_id: int
    owner: str
    title: str
    author: str
    status: PaperStatus
    version_count: int


class PaperRecord(BaseModel):
    """Full persisted form of a paper, including its version history."""

    paper_id: int = Field(..., ge=1)
    owner: str
    title: str
    author: str
    status: PaperStatus
    versions: list[Version] = Field(default_factory=list)


class UsedContentHash(BaseModel):
    """A content hash reserved by the approval of a paper's original version."""

    content_hash: bytes
    claimed_by: int | None = None

    @field_validator("content_hash", mode="before")
    @classmethod
    def _coerce_content_hash(cls, value: Any) -> bytes:
        return content_hash_from_any(value)

    @field_serializer("content_hash", when_used="json")
    def _hex(self, value: bytes) -> str:
        return value.hex()


class LedgerSnapshot(BaseModel):
    """Complete logical state of a paper ledger."""

    admin: str
    paper_count: int = Field(default=0, ge=0)
    papers: list[PaperRecord] = Field(default_factory=list)
    auditors: list[str] = Field(default_factory=list)
    used_content_hashes: list[UsedContentHash] = Field(default_factory=list)
