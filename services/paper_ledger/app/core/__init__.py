"""Core business logic for the Paper Ledger."""

from services.paper_ledger.app.core.access_control import AccessControlRegistry
from services.paper_ledger.app.core.dedup import ContentHashRegistry
from services.paper_ledger.app.core.ledger import PaperLedger
from services.paper_ledger.app.core.state_machine import (
    InvalidTransitionError,
    StateMachine,
)
from services.paper_ledger.app.core.normalizers import (
    compute_content_hash,
    normalize_content_hash,
    normalize_identity,
)

__all__ = [
    "AccessControlRegistry",
    "ContentHashRegistry",
    "PaperLedger",
    "InvalidTransitionError",
    "StateMachine",
    "compute_content_hash",
    "normalize_content_hash",
    "normalize_identity",
]
