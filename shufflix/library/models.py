"""Persisted library state exchanged with a LibraryStore."""

from datetime import datetime
from typing import Annotated

from pydantic import Field

from shufflix.data_model import Candidate, MediaKind, StrictBaseModel, TitleKey


class RatingEntry(StrictBaseModel):
    """A star rating for one title."""

    id: int
    media_kind: MediaKind
    stars: Annotated[int, Field(ge=1, le=5)]

    @property
    def key(self) -> TitleKey:
        """Canonical identity of the rated title."""
        return TitleKey(self.id, self.media_kind)


class LibrarySnapshot(StrictBaseModel):
    """Point-in-time copy of everything the library persists.

    Attributes:
        liked: Liked titles, oldest first.
        seen: Identities already shown to the user.
        skipped: Identities the user skipped, oldest first.
        ratings: Star ratings.
        watched: Identities marked as watched.
        version: Monotonic change counter.
        updated_at: Time of the last change, if any.
    """

    liked: tuple[Candidate, ...] = ()
    seen: tuple[TitleKey, ...] = ()
    skipped: tuple[TitleKey, ...] = ()
    ratings: tuple[RatingEntry, ...] = ()
    watched: tuple[TitleKey, ...] = ()
    version: Annotated[int, Field(ge=0)] = 0
    updated_at: datetime | None = None
