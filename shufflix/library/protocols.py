"""Protocols for the persistence and sync collaborators."""

from typing import Protocol, runtime_checkable

from shufflix.data_model import Candidate, TitleKey
from shufflix.library.models import LibrarySnapshot


@runtime_checkable
class LibraryStore(Protocol):
    """Local persistence for the user's library.

    Mutators are notifications: the deck never waits on them and never
    reads back from the store except through ``snapshot()`` at start-up.
    """

    def like(self, item: Candidate) -> None: ...

    def unlike(self, key: TitleKey) -> None: ...

    def mark_skipped(self, key: TitleKey) -> None: ...

    def rate(self, key: TitleKey, stars: int | None) -> None: ...

    def set_watched(self, key: TitleKey, watched: bool) -> None: ...

    def snapshot(self) -> LibrarySnapshot: ...


@runtime_checkable
class SyncNotifier(Protocol):
    """Remote sync collaborator announced to after every swipe."""

    async def record_swipe(self, item: Candidate, liked: bool) -> None:
        """Announce a swipe decision.

        Args:
            item: Title that was swiped.
            liked: True for a right swipe.
        """
        ...
