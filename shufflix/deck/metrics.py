"""Metrics collection for the deck engine."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class DeckMetrics:
    """Metrics for deck loads and mutations.

    Attributes:
        loads_started: Refresh and load-more runs started.
        loads_cancelled: Runs superseded before finishing.
        batches_committed: Feed batches committed to pool and deck.
        items_admitted: Cards added to the deck by feed batches.
        feed_errors_by_feed: Feed-local fetch failures per feed.
        feeds_skipped_by_kind: Rotation slots skipped by the kind filter.
        similar_injected: Cards added by similar-title injection.
        swipes_liked: Right swipes.
        swipes_skipped: Left swipes.
    """

    loads_started: int = 0
    loads_cancelled: int = 0
    batches_committed: int = 0
    items_admitted: int = 0
    feed_errors_by_feed: dict[str, int] = field(default_factory=dict)
    feeds_skipped_by_kind: int = 0
    similar_injected: int = 0
    swipes_liked: int = 0
    swipes_skipped: int = 0

    _instance: ClassVar["DeckMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "DeckMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_load_started(self) -> None:
        self.loads_started += 1

    def record_load_cancelled(self) -> None:
        self.loads_cancelled += 1

    def record_batch(self, admitted: int) -> None:
        """Record a committed batch and the cards it admitted."""
        self.batches_committed += 1
        self.items_admitted += admitted

    def record_feed_error(self, feed: str) -> None:
        self.feed_errors_by_feed[feed] = self.feed_errors_by_feed.get(feed, 0) + 1

    def record_feed_skipped(self) -> None:
        self.feeds_skipped_by_kind += 1

    def record_similar(self, count: int) -> None:
        self.similar_injected += count

    def record_swipe(self, liked: bool) -> None:
        if liked:
            self.swipes_liked += 1
        else:
            self.swipes_skipped += 1

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary."""
        return {
            "loads_started": self.loads_started,
            "loads_cancelled": self.loads_cancelled,
            "batches_committed": self.batches_committed,
            "items_admitted": self.items_admitted,
            "feed_errors_by_feed": dict(self.feed_errors_by_feed),
            "feeds_skipped_by_kind": self.feeds_skipped_by_kind,
            "similar_injected": self.similar_injected,
            "swipes_liked": self.swipes_liked,
            "swipes_skipped": self.swipes_skipped,
        }
