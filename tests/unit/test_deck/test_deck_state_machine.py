"""Unit tests for the deck lifecycle state machine."""

import pytest

from shufflix.deck import DeckState, DeckStateMachine, DeckStateTransitionError


class TestDeckStateMachine:
    """Tests for DeckStateMachine."""

    def test_initial_state_is_cold(self) -> None:
        """Test a new machine starts cold."""
        machine = DeckStateMachine("test")
        assert machine.state == DeckState.COLD
        assert not machine.is_primed()

    def test_happy_path(self) -> None:
        """Test COLD -> PRIMING -> PRIMED -> STEADY."""
        machine = DeckStateMachine("test")
        machine.transition(DeckState.PRIMING)
        assert machine.is_priming()

        machine.transition(DeckState.PRIMED)
        assert machine.is_primed()
        assert machine.is_pinned_phase()

        machine.transition(DeckState.STEADY)
        assert machine.is_primed()
        assert not machine.is_pinned_phase()

    @pytest.mark.parametrize(
        "path",
        [
            [DeckState.PRIMING, DeckState.PRIMING],
            [DeckState.PRIMING, DeckState.COLD],
            [DeckState.PRIMING, DeckState.PRIMED, DeckState.PRIMING],
            [DeckState.PRIMING, DeckState.PRIMED, DeckState.STEADY, DeckState.PRIMING],
        ],
    )
    def test_refresh_and_fallback_paths(self, path: list[DeckState]) -> None:
        """Test refresh from any state and the empty-priming fallback."""
        machine = DeckStateMachine("test")
        for state in path:
            machine.transition(state)
        assert machine.state == path[-1]

    @pytest.mark.parametrize(
        ("setup", "target"),
        [
            ([], DeckState.PRIMED),
            ([], DeckState.STEADY),
            ([DeckState.PRIMING], DeckState.STEADY),
            ([DeckState.PRIMING, DeckState.PRIMED], DeckState.COLD),
            ([DeckState.PRIMING, DeckState.PRIMED, DeckState.STEADY], DeckState.PRIMED),
        ],
    )
    def test_invalid_transitions(self, setup: list[DeckState], target: DeckState) -> None:
        """Test illegal transitions raise with both states."""
        machine = DeckStateMachine("test")
        for state in setup:
            machine.transition(state)

        assert not machine.can_transition(target)
        with pytest.raises(DeckStateTransitionError) as exc_info:
            machine.transition(target)

        assert exc_info.value.to_state == target
        assert exc_info.value.to_dict()["to_state"] == target.name
