"""Deck lifecycle state machine implementation."""

from enum import Enum
from typing import ClassVar

import structlog


logger = structlog.get_logger()


class DeckState(str, Enum):
    """Deck lifecycle states.

    State transitions:
        COLD -> PRIMING: First load (refresh or load-more) starts
        PRIMING -> PRIMED: First batch committed; the top card is pinned
        PRIMING -> COLD: Priming load ended with an empty deck
        PRIMED -> STEADY: First user action releases the pin
        Any -> PRIMING: Explicit refresh
    """

    COLD = "cold"
    PRIMING = "priming"
    PRIMED = "primed"
    STEADY = "steady"


class DeckStateTransitionError(Exception):
    """Raised when an invalid deck state transition is attempted."""

    def __init__(self, from_state: DeckState, to_state: DeckState) -> None:
        """Initialize the error.

        Args:
            from_state: The current state.
            to_state: The attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid deck state transition: {from_state.name} -> {to_state.name}"
        )

    def to_dict(self) -> dict[str, str]:
        """Convert error to dictionary for logging."""
        return {"from_state": self.from_state.name, "to_state": self.to_state.name}


class DeckStateMachine:
    """State machine for the deck lifecycle.

    Enforces valid transitions between priming, pinning and steady use.
    Logs invariant violations when invalid transitions are attempted.
    """

    VALID_TRANSITIONS: ClassVar[dict[DeckState, set[DeckState]]] = {
        DeckState.COLD: {DeckState.PRIMING},
        DeckState.PRIMING: {DeckState.PRIMING, DeckState.PRIMED, DeckState.COLD},
        DeckState.PRIMED: {DeckState.PRIMING, DeckState.STEADY},
        DeckState.STEADY: {DeckState.PRIMING},
    }

    def __init__(self, session_id: str) -> None:
        """Initialize the state machine in COLD state.

        Args:
            session_id: Session identifier for logging.
        """
        self._state = DeckState.COLD
        self._log = logger.bind(component="deck", session_id=session_id)

    @property
    def state(self) -> DeckState:
        """Get the current state."""
        return self._state

    def can_transition(self, to_state: DeckState) -> bool:
        """Check if a transition to the given state is valid.

        Args:
            to_state: The target state.

        Returns:
            True if the transition is valid, False otherwise.
        """
        return to_state in self.VALID_TRANSITIONS.get(self._state, set())

    def transition(self, to_state: DeckState) -> None:
        """Transition to a new state.

        Args:
            to_state: The target state.

        Raises:
            DeckStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition(to_state):
            self._log.error(
                "invariant_violation",
                error_type="illegal_state_transition",
                from_state=self._state.name,
                to_state=to_state.name,
            )
            raise DeckStateTransitionError(self._state, to_state)

        old_state = self._state
        self._state = to_state
        self._log.info(
            "deck_state_transition",
            from_state=old_state.name,
            to_state=to_state.name,
        )

    def is_primed(self) -> bool:
        """Check if the deck has been primed (pinned or in steady use)."""
        return self._state in (DeckState.PRIMED, DeckState.STEADY)

    def is_priming(self) -> bool:
        """Check if the first load is in progress."""
        return self._state == DeckState.PRIMING

    def is_pinned_phase(self) -> bool:
        """Check if the top card is still protected by the pin."""
        return self._state == DeckState.PRIMED
