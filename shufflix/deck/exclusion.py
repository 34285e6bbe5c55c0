"""Exclusion, rating and watched state owned by the deck controller."""

from shufflix.data_model import Candidate, TitleKey
from shufflix.library.models import LibrarySnapshot


class ExclusionState:
    """Everything the deck must never resurface, plus library annotations.

    All collections are keyed by ``TitleKey`` so a movie and a show that
    share a numeric catalog id never block each other.

    Skips are one ordered collection: the key set is what persists, and
    the candidate (when known in this session) backs the skip history
    view. Restored skips carry no candidate.
    """

    def __init__(self) -> None:
        self._seen: set[TitleKey] = set()
        self._skipped: dict[TitleKey, Candidate | None] = {}
        self._liked: dict[TitleKey, Candidate] = {}
        self._ratings: dict[TitleKey, int] = {}
        self._watched: set[TitleKey] = set()

    def restore(self, snapshot: LibrarySnapshot) -> None:
        """Replace all state with a persisted snapshot.

        Args:
            snapshot: Snapshot read from the library store.
        """
        self._seen = set(snapshot.seen)
        self._skipped = dict.fromkeys(snapshot.skipped)
        self._liked = {item.key: item for item in snapshot.liked}
        self._ratings = {entry.key: entry.stars for entry in snapshot.ratings}
        self._watched = set(snapshot.watched)

    # Seen

    def mark_seen(self, key: TitleKey) -> None:
        self._seen.add(key)

    @property
    def seen_keys(self) -> frozenset[TitleKey]:
        return frozenset(self._seen)

    # Skipped

    def record_skip(self, item: Candidate) -> None:
        """Record a skip, keeping the candidate for the session history."""
        self._skipped.pop(item.key, None)
        self._skipped[item.key] = item

    @property
    def skipped_keys(self) -> frozenset[TitleKey]:
        return frozenset(self._skipped)

    @property
    def skipped_history(self) -> list[Candidate]:
        """Titles skipped during this session, oldest first."""
        return [item for item in self._skipped.values() if item is not None]

    # Liked

    def like(self, item: Candidate) -> bool:
        """Add a title to the liked collection.

        Returns:
            False if it was already liked.
        """
        if item.key in self._liked:
            return False
        self._liked[item.key] = item
        return True

    def unlike(self, key: TitleKey) -> Candidate | None:
        """Remove a title from the liked collection.

        Returns:
            The removed candidate, or None if it was not liked.
        """
        return self._liked.pop(key, None)

    def is_liked(self, key: TitleKey) -> bool:
        return key in self._liked

    @property
    def liked(self) -> list[Candidate]:
        """Liked titles, newest first."""
        return list(reversed(self._liked.values()))

    # Blocked

    @property
    def blocked(self) -> set[TitleKey]:
        """Union of seen, skipped and liked identities."""
        return self._seen.union(self._skipped, self._liked)

    def is_blocked(self, key: TitleKey) -> bool:
        return key in self._seen or key in self._skipped or key in self._liked

    # Ratings

    def rating(self, key: TitleKey) -> int | None:
        return self._ratings.get(key)

    def set_rating(self, key: TitleKey, stars: int | None) -> None:
        """Store a 1-5 rating, or remove it when ``stars`` is None."""
        if stars is None:
            self._ratings.pop(key, None)
        else:
            self._ratings[key] = stars

    @property
    def ratings(self) -> dict[TitleKey, int]:
        return dict(self._ratings)

    # Watched

    def is_watched(self, key: TitleKey) -> bool:
        return key in self._watched

    def set_watched(self, key: TitleKey, watched: bool) -> None:
        if watched:
            self._watched.add(key)
        else:
            self._watched.discard(key)

    @property
    def watched_keys(self) -> frozenset[TitleKey]:
        return frozenset(self._watched)
