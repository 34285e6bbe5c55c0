"""Feed/deck engine.

This module provides:
- FeedScheduler: round-robin feed rotation with per-feed page cursors
- CandidatePool: session-wide deduplicated pool and filter facets
- DeckController: visible deck, exclusions, pinning and refill policy
- DeckStateMachine: COLD -> PRIMING -> PRIMED -> STEADY lifecycle
"""

from shufflix.deck.cancellation import CancellationToken, LoadCancelledError
from shufflix.deck.controller import DeckController
from shufflix.deck.exclusion import ExclusionState
from shufflix.deck.feeds import FeedBatch, FeedError, FeedScheduler
from shufflix.deck.metrics import DeckMetrics
from shufflix.deck.pool import CandidatePool
from shufflix.deck.state_machine import DeckState, DeckStateMachine, DeckStateTransitionError


__all__ = [
    # Controller
    "DeckController",
    # Scheduling
    "FeedBatch",
    "FeedError",
    "FeedScheduler",
    "CandidatePool",
    "ExclusionState",
    # Cancellation
    "CancellationToken",
    "LoadCancelledError",
    # State machine
    "DeckState",
    "DeckStateMachine",
    "DeckStateTransitionError",
    # Metrics
    "DeckMetrics",
]
