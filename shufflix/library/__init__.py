"""Library collaborators: persistence and sync protocols plus an in-memory store."""

from shufflix.library.models import LibrarySnapshot, RatingEntry
from shufflix.library.protocols import LibraryStore, SyncNotifier
from shufflix.library.store import InMemoryLibraryStore, LibraryEvent


__all__ = [
    "InMemoryLibraryStore",
    "LibraryEvent",
    "LibrarySnapshot",
    "LibraryStore",
    "RatingEntry",
    "SyncNotifier",
]
