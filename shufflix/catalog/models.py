"""Data models for the catalog layer."""

import random
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from shufflix.data_model import MediaKind, ProviderLink


class Feed(str, Enum):
    """Named upstream queries the deck rotates through.

    Each feed owns an independent page cursor. Trending feeds mix movies
    and shows; the others are dedicated to one media kind.
    """

    TRENDING_WEEK = "trending_week"
    TRENDING_DAY = "trending_day"
    POPULAR_MOVIE = "popular_movie"
    POPULAR_TV = "popular_tv"
    TOP_MOVIE = "top_movie"
    TOP_TV = "top_tv"
    DISCOVER_MOVIE = "discover_movie"
    DISCOVER_TV = "discover_tv"

    @property
    def media_kind(self) -> MediaKind | None:
        """Kind this feed is dedicated to, or None when kind-agnostic."""
        return _FEED_MEDIA_KIND[self]

    @property
    def is_discover(self) -> bool:
        """Whether the feed accepts a genre constraint."""
        return self in (Feed.DISCOVER_MOVIE, Feed.DISCOVER_TV)


_FEED_MEDIA_KIND: dict[Feed, MediaKind | None] = {
    Feed.TRENDING_WEEK: None,
    Feed.TRENDING_DAY: None,
    Feed.POPULAR_MOVIE: MediaKind.MOVIE,
    Feed.POPULAR_TV: MediaKind.TV,
    Feed.TOP_MOVIE: MediaKind.MOVIE,
    Feed.TOP_TV: MediaKind.TV,
    Feed.DISCOVER_MOVIE: MediaKind.MOVIE,
    Feed.DISCOVER_TV: MediaKind.TV,
}


class SearchScope(str, Enum):
    """Catalog search endpoints."""

    MULTI = "multi"
    MOVIE = "movie"
    TV = "tv"


class CatalogErrorClass(str, Enum):
    """Classification of catalog errors for metrics and retry decisions.

    - NETWORK_TIMEOUT: Request timed out
    - CONNECTION_ERROR: Could not establish connection
    - HTTP_4XX: Non-retryable 4xx client error (except 429)
    - HTTP_5XX: Retryable 5xx server error
    - RATE_LIMITED: 429 Too Many Requests
    - DECODE: Response body was not the expected JSON shape
    - UNKNOWN: Unclassified error
    """

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    RATE_LIMITED = "RATE_LIMITED"
    DECODE = "DECODE"
    UNKNOWN = "UNKNOWN"


class CatalogError(Exception):
    """Raised by a catalog client once its retries are exhausted.

    Provides structured error information for logging and for the
    single user-visible message retained per deck load.
    """

    def __init__(
        self,
        error_class: CatalogErrorClass,
        message: str,
        status_code: int | None = None,
        retry_after: int | None = None,
    ) -> None:
        """Initialize the catalog error.

        Args:
            error_class: Classification of the error.
            message: Human-readable error message.
            status_code: HTTP status code if available.
            retry_after: Retry-After seconds (for 429).
        """
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.status_code = status_code
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "status_code": self.status_code,
        }


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Controls how many times to retry and the backoff strategy.
    Uses exponential backoff: delay = base_delay_ms * (exponential_base ^ attempt)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=10)] = 1
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = 120
    max_delay_ms: Annotated[int, Field(ge=0, le=300000)] = 2000
    exponential_base: Annotated[float, Field(ge=1.0, le=5.0)] = 2.0
    jitter_factor: Annotated[float, Field(ge=0.0, le=2.0)] = 1.5

    def should_retry(self, error: CatalogError, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            error: The error that occurred.
            attempt: Current attempt number (0-indexed).

        Returns:
            True if the request should be retried.
        """
        if attempt >= self.max_retries:
            return False

        retryable_classes = {
            CatalogErrorClass.NETWORK_TIMEOUT,
            CatalogErrorClass.CONNECTION_ERROR,
            CatalogErrorClass.HTTP_5XX,
            CatalogErrorClass.RATE_LIMITED,
        }

        return error.error_class in retryable_classes

    def get_delay_ms(self, attempt: int) -> int:
        """Calculate delay before the next retry attempt.

        Args:
            attempt: Current attempt number (0-indexed).

        Returns:
            Delay in milliseconds.
        """
        delay = self.base_delay_ms * (self.exponential_base**attempt)
        delay = min(delay, self.max_delay_ms)

        jitter = delay * self.jitter_factor * random.random()  # noqa: S311
        return int(delay + jitter)


class RawCandidate(BaseModel):
    """One result record as returned by a catalog list endpoint.

    Every field other than ``id`` is optional so partial upstream records
    still decode. Unknown upstream fields are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    title: str | None = None
    name: str | None = None
    overview: str | None = None
    poster_path: str | None = None
    release_date: str | None = None
    first_air_date: str | None = None
    media_type: str | None = None
    genre_ids: list[int] = Field(default_factory=list)
    vote_average: float | None = None
    vote_count: int | None = None
    providers: tuple[ProviderLink, ...] = ()
