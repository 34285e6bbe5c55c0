"""In-memory library store."""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from shufflix.data_model import Candidate, TitleKey
from shufflix.library.models import LibrarySnapshot, RatingEntry


logger = structlog.get_logger()


@dataclass(frozen=True)
class LibraryEvent:
    """One mutation received by the store, in arrival order."""

    action: str
    key: TitleKey
    value: int | bool | None = None


class InMemoryLibraryStore:
    """LibraryStore that keeps everything in process memory.

    Skips also mark the title as seen, matching what the deck expects
    after a restore. Every mutation bumps ``version`` and is appended to
    ``events`` so callers can assert on what was persisted.
    """

    def __init__(self, initial: LibrarySnapshot | None = None) -> None:
        """Initialize the store.

        Args:
            initial: Snapshot to start from; empty when None.
        """
        snap = initial or LibrarySnapshot()
        self._liked: dict[TitleKey, Candidate] = {item.key: item for item in snap.liked}
        self._seen: dict[TitleKey, None] = dict.fromkeys(snap.seen)
        self._skipped: dict[TitleKey, None] = dict.fromkeys(snap.skipped)
        self._ratings: dict[TitleKey, int] = {e.key: e.stars for e in snap.ratings}
        self._watched: dict[TitleKey, None] = dict.fromkeys(snap.watched)
        self._version = snap.version
        self._updated_at = snap.updated_at
        self.events: list[LibraryEvent] = []
        self._log = logger.bind(component="library")

    @property
    def version(self) -> int:
        return self._version

    def like(self, item: Candidate) -> None:
        self._liked.pop(item.key, None)
        self._liked[item.key] = item
        self._seen[item.key] = None
        self._touch(LibraryEvent("like", item.key))

    def unlike(self, key: TitleKey) -> None:
        self._liked.pop(key, None)
        self._touch(LibraryEvent("unlike", key))

    def mark_skipped(self, key: TitleKey) -> None:
        self._skipped[key] = None
        self._seen[key] = None
        self._touch(LibraryEvent("skip", key))

    def rate(self, key: TitleKey, stars: int | None) -> None:
        if stars is None:
            self._ratings.pop(key, None)
        else:
            self._ratings[key] = stars
        self._touch(LibraryEvent("rate", key, stars))

    def set_watched(self, key: TitleKey, watched: bool) -> None:
        if watched:
            self._watched[key] = None
        else:
            self._watched.pop(key, None)
        self._touch(LibraryEvent("watched", key, watched))

    def snapshot(self) -> LibrarySnapshot:
        """Copy the current state into an immutable snapshot."""
        return LibrarySnapshot(
            liked=tuple(self._liked.values()),
            seen=tuple(self._seen),
            skipped=tuple(self._skipped),
            ratings=tuple(
                RatingEntry(id=key.id, media_kind=key.media_kind, stars=stars)
                for key, stars in self._ratings.items()
            ),
            watched=tuple(self._watched),
            version=self._version,
            updated_at=self._updated_at,
        )

    def _touch(self, event: LibraryEvent) -> None:
        self.events.append(event)
        self._version += 1
        self._updated_at = datetime.now(UTC)
        self._log.debug(
            "library_updated",
            action=event.action,
            title=str(event.key),
            version=self._version,
        )
