"""Title, identity and filter models shared by the catalog, deck and search."""

from enum import Enum
from typing import Annotated, Any, NamedTuple

from pydantic import Field, field_validator

from shufflix.data_model.base import StrictBaseModel


class MediaKind(str, Enum):
    """Closed set of media kinds a catalog record can carry.

    - MOVIE: a feature film
    - TV: a series
    - UNKNOWN: anything the catalog labelled otherwise
    """

    MOVIE = "movie"
    TV = "tv"
    UNKNOWN = "unknown"

    @classmethod
    def from_loose(cls, raw: object) -> "MediaKind":
        """Map an arbitrary value to a media kind without ever raising.

        Args:
            raw: Value from an upstream payload or persisted snapshot.

        Returns:
            MOVIE or TV for the recognised spellings, UNKNOWN otherwise.
        """
        if isinstance(raw, MediaKind):
            return raw
        if not isinstance(raw, str):
            return cls.UNKNOWN
        value = raw.strip().lower()
        if value == "movie":
            return cls.MOVIE
        if value == "tv":
            return cls.TV
        return cls.UNKNOWN


class ContentKind(str, Enum):
    """Content-kind filter selectable by the user."""

    ALL = "all"
    MOVIE = "movie"
    TV = "tv"


class TitleKey(NamedTuple):
    """Canonical identity of a title: numeric catalog id plus media kind."""

    id: int
    media_kind: MediaKind

    def __str__(self) -> str:
        return f"{self.id}#{self.media_kind.value}"


class ProviderLink(StrictBaseModel):
    """A streaming provider a title is available on."""

    name: Annotated[str, Field(min_length=1)]
    url: str
    logo_url: str | None = None


class Candidate(StrictBaseModel):
    """A single media title with enough metadata to display and filter on.

    Attributes:
        id: Numeric catalog id (unique only together with media_kind).
        media_kind: Movie, TV or unknown.
        name: Display title.
        year: Four-digit release/air year, or empty.
        overview: Plot synopsis, possibly empty.
        poster_ref: Absolute poster image URL.
        genres: Genre names.
        providers: Streaming providers.
        rating: Average vote on a 0-10 scale.
        vote_count: Number of votes behind the rating.
    """

    id: int
    media_kind: MediaKind = MediaKind.UNKNOWN
    name: str
    year: str = ""
    overview: str = ""
    poster_ref: str | None = None
    genres: tuple[str, ...] = ()
    providers: tuple[ProviderLink, ...] = ()
    rating: float | None = None
    vote_count: int | None = None

    @field_validator("media_kind", mode="before")
    @classmethod
    def coerce_media_kind(cls, v: Any) -> MediaKind:
        """Degrade unrecognised media kinds to UNKNOWN."""
        return MediaKind.from_loose(v)

    @property
    def key(self) -> TitleKey:
        """Canonical (id, media_kind) identity."""
        return TitleKey(self.id, self.media_kind)

    @property
    def provider_names(self) -> frozenset[str]:
        """Names of the providers carrying this title."""
        return frozenset(p.name for p in self.providers)

    @property
    def primary_genre(self) -> str | None:
        """First listed genre, if any."""
        return self.genres[0] if self.genres else None

    @property
    def rating_text(self) -> str:
        """Compact rating label, e.g. "7.9 (82k)", or an em dash with no votes."""
        if self.rating is None or not self.vote_count:
            return "—"
        votes = self.vote_count
        if votes >= 1_000:
            thousands = votes / 1_000
            votes_text = f"{thousands:.0f}k" if thousands >= 10 else f"{thousands:.1f}k"
        else:
            votes_text = str(votes)
        return f"{self.rating:.1f} ({votes_text})"


class Filters(StrictBaseModel):
    """Immutable deck filter: content kind plus provider and genre sets.

    Empty provider/genre sets mean "no constraint". A candidate matches a
    non-empty set when it shares at least one member with it.
    """

    kind: ContentKind = ContentKind.ALL
    providers: frozenset[str] = frozenset()
    genres: frozenset[str] = frozenset()

    def allows_media(self, media_kind: MediaKind | None) -> bool:
        """Check whether a feed producing ``media_kind`` may be queried.

        Args:
            media_kind: Kind the feed is dedicated to, or None for
                kind-agnostic feeds.

        Returns:
            True when the feed is compatible with the kind filter.
        """
        if media_kind is None or self.kind == ContentKind.ALL:
            return True
        if self.kind == ContentKind.MOVIE:
            return media_kind == MediaKind.MOVIE
        return media_kind == MediaKind.TV

    def matches(self, candidate: Candidate) -> bool:
        """Check whether a candidate passes every filter dimension.

        Args:
            candidate: Candidate to test.

        Returns:
            True if the candidate matches kind, providers and genres.
        """
        if self.kind == ContentKind.MOVIE and candidate.media_kind != MediaKind.MOVIE:
            return False
        if self.kind == ContentKind.TV and candidate.media_kind != MediaKind.TV:
            return False
        if self.providers and not (candidate.provider_names & self.providers):
            return False
        return not (self.genres and not (set(candidate.genres) & self.genres))
