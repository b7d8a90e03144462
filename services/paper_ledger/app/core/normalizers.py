"""Input normalization for identities, content hashes and signatures."""

import hashlib
import re
from typing import Any

from services.paper_ledger.app.errors import InvalidArgumentError
from shared.schemas.paper import content_hash_from_any, signature_from_any

_ZERO_ADDRESS = re.compile(r"^0x0+$", re.IGNORECASE)


def is_null_identity(identity: str | None) -> bool:
    """Check whether an identity is the null identity.

    None, blank strings and the all-zero account address are all null.
    Non-string values are never a usable identity and count as null too.
    """
    if not isinstance(identity, str):
        return True
    stripped = identity.strip()
    return not stripped or bool(_ZERO_ADDRESS.match(stripped))


def normalize_identity(identity: str | None) -> str:
    """Strip an identity and reject the null identity.

    Raises:
        InvalidArgumentError: If the identity is null or not a string
    """
    if identity is not None and not isinstance(identity, str):
        raise InvalidArgumentError(f"Identity must be a string, got {type(identity).__name__}")
    if is_null_identity(identity):
        raise InvalidArgumentError("Identity must not be null")
    return identity.strip()


def normalize_content_hash(content_hash: Any) -> bytes:
    """Coerce a content hash (32 bytes or 64 hex chars) to bytes.

    Raises:
        InvalidArgumentError: If the value is not a 32-byte digest
    """
    try:
        return content_hash_from_any(content_hash)
    except ValueError as e:
        raise InvalidArgumentError(str(e)) from e


def normalize_signature(signature: Any) -> bytes:
    """Coerce an optional signature blob to bytes. Contents are not verified."""
    try:
        return signature_from_any(signature)
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid signature: {e}") from e


def normalize_content_id(content_id: Any) -> str:
    """Validate a content store pointer.

    Raises:
        InvalidArgumentError: If the content id is empty or not a string
    """
    if not isinstance(content_id, str) or not content_id.strip():
        raise InvalidArgumentError("Content id must be a non-empty string")
    return content_id.strip()


def compute_content_hash(data: bytes) -> bytes:
    """Compute the deduplication key for raw file bytes."""
    return hashlib.sha256(data).digest()
