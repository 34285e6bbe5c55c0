"""Session-wide candidate pool."""

from collections.abc import Iterable, Iterator

from shufflix.data_model import Candidate, Filters, TitleKey


class CandidatePool:
    """Deduplicated, insertion-ordered superset of everything fetched.

    The pool only grows within a session; ``clear()`` is reserved for an
    explicit refresh. Insertion order is the stable tiebreak when the deck
    is rebuilt from the pool.
    """

    def __init__(self) -> None:
        self._items: dict[TitleKey, Candidate] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._items.values())

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def contains(self, key: TitleKey) -> bool:
        """Check whether a title is already in the pool."""
        return key in self._items

    def get(self, key: TitleKey) -> Candidate | None:
        """Look up a pooled title by identity."""
        return self._items.get(key)

    def merge(self, items: Iterable[Candidate]) -> list[Candidate]:
        """Add items not already present.

        Args:
            items: Candidates to merge, in arrival order.

        Returns:
            The candidates that were newly added, in arrival order.
        """
        added: list[Candidate] = []
        for item in items:
            if item.key in self._items:
                continue
            self._items[item.key] = item
            added.append(item)
        return added

    def eligible(self, filters: Filters, blocked: set[TitleKey]) -> list[Candidate]:
        """Pool members that are unblocked and match the filters.

        Args:
            filters: Active filters.
            blocked: Identities never to resurface.

        Returns:
            Matching candidates in pool insertion order.
        """
        return [c for c in self._items.values() if c.key not in blocked and filters.matches(c)]

    @property
    def available_providers(self) -> list[str]:
        """Sorted provider names across the pool (filter facet)."""
        names = {p.name for c in self._items.values() for p in c.providers}
        return sorted(names, key=str.casefold)

    @property
    def available_genres(self) -> list[str]:
        """Sorted genre names across the pool (filter facet)."""
        names = {g for c in self._items.values() for g in c.genres}
        return sorted(names, key=str.casefold)

    def clear(self) -> None:
        """Drop every pooled item."""
        self._items.clear()
