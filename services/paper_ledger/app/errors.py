"""Typed failures raised by ledger operations.

Every failure leaves the ledger untouched, so callers may branch on the
exception type (or its ``code``) and decide whether to retry.
"""


class LedgerError(Exception):
    """Base class for all ledger failures."""

    code = "ledger_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidArgumentError(LedgerError):
    """Malformed or out-of-range identifier, index, hash or identity."""

    code = "invalid_argument"


class UnauthorizedError(LedgerError):
    """Caller lacks the required role or ownership."""

    code = "unauthorized"

    def __init__(self, caller: str | None, message: str):
        self.caller = caller
        super().__init__(message)


class AlreadyExistsError(LedgerError):
    """Identity is already an auditor."""

    code = "already_exists"


class NotFoundError(LedgerError):
    """Identity is not an auditor."""

    code = "not_found"


class InvalidStateError(LedgerError):
    """Operation is not valid for the paper's current status."""

    code = "invalid_state"


class ConflictError(LedgerError):
    """Original content hash is already reserved by another published paper."""

    code = "conflict"

    def __init__(self, content_hash: bytes, claimed_by: int | None):
        self.content_hash = content_hash
        self.claimed_by = claimed_by
        super().__init__(
            f"Content hash {content_hash.hex()[:16]}... already claimed by paper {claimed_by}"
        )
