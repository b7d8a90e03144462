"""Paper state machine for lifecycle management."""

from services.paper_ledger.app.errors import InvalidStateError
from shared.schemas.paper import PaperStatus


class InvalidTransitionError(InvalidStateError):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        current_state: PaperStatus,
        target_state: PaperStatus,
        message: str | None = None,
    ):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            message
            or f"Invalid transition from {current_state.name} to {target_state.name}"
        )


class StateMachine:
    """Paper lifecycle state machine.

    Valid transitions:
    - pending -> published (auditor approval)
    - pending -> rejected (auditor rejection)
    - pending/published/rejected -> removed (owner removal)

    Removed is terminal. Nothing ever returns to pending.
    """

    VALID_TRANSITIONS: set[tuple[PaperStatus, PaperStatus]] = {
        (PaperStatus.PENDING, PaperStatus.PUBLISHED),
        (PaperStatus.PENDING, PaperStatus.REJECTED),
        (PaperStatus.PENDING, PaperStatus.REMOVED),
        (PaperStatus.PUBLISHED, PaperStatus.REMOVED),
        (PaperStatus.REJECTED, PaperStatus.REMOVED),
    }

    # Only published papers accept new versions
    VERSIONABLE_STATES: frozenset[PaperStatus] = frozenset({PaperStatus.PUBLISHED})

    @classmethod
    def is_valid_transition(
        cls,
        current_state: PaperStatus,
        target_state: PaperStatus,
    ) -> bool:
        """Check if a state transition is valid.

        Args:
            current_state: Current paper state
            target_state: Desired new state

        Returns:
            True if transition is valid, False otherwise
        """
        return (current_state, target_state) in cls.VALID_TRANSITIONS

    @classmethod
    def validate_transition(
        cls,
        current_state: PaperStatus,
        target_state: PaperStatus,
    ) -> None:
        """Validate a state transition, raising an error if invalid.

        Raises:
            InvalidTransitionError: If transition is not valid
        """
        if not cls.is_valid_transition(current_state, target_state):
            raise InvalidTransitionError(current_state, target_state)

    @classmethod
    def get_valid_next_states(cls, current_state: PaperStatus) -> list[PaperStatus]:
        """Get valid next states from current state, ordered by ordinal."""
        return sorted(
            target
            for (source, target) in cls.VALID_TRANSITIONS
            if source == current_state
        )

    @classmethod
    def is_terminal_state(cls, state: PaperStatus) -> bool:
        """Check if a state is terminal (no valid transitions out)."""
        return not cls.get_valid_next_states(state)

    @classmethod
    def can_add_version(cls, state: PaperStatus) -> bool:
        """Check if a paper in this state may receive new versions."""
        return state in cls.VERSIONABLE_STATES

    @classmethod
    def validate_can_add_version(cls, state: PaperStatus) -> None:
        """Raise if a paper in this state may not receive new versions.

        Raises:
            InvalidStateError: If the paper is not published
        """
        if not cls.can_add_version(state):
            raise InvalidStateError(
                f"Versions can only be added to PUBLISHED papers, paper is {state.name}"
            )
