"""Protocol for catalog clients consumed by the deck and search."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from shufflix.catalog.models import Feed, RawCandidate, SearchScope
from shufflix.data_model import Candidate, MediaKind


@runtime_checkable
class CatalogClient(Protocol):
    """Source of candidate records.

    Implementations own transport concerns (timeouts, retries, backoff).
    Any exception other than cancellation is treated by callers as local
    to the request that raised it.
    """

    async def fetch(
        self,
        feed: Feed,
        page: int,
        genre_ids: Sequence[int] = (),
    ) -> list[RawCandidate]:
        """Fetch one page of a named feed.

        Args:
            feed: Feed to query.
            page: 1-based page number.
            genre_ids: Genre constraint, honoured by discover feeds only.

        Returns:
            Raw records in upstream order.
        """
        ...

    async def fetch_similar(self, title_id: int, media_kind: MediaKind) -> list[Candidate]:
        """Fetch titles similar to the given one.

        Args:
            title_id: Numeric catalog id.
            media_kind: Kind of the reference title.

        Returns:
            Similar candidates in upstream order.
        """
        ...

    async def search(self, query: str, scope: SearchScope, page: int) -> list[RawCandidate]:
        """Run a free-text search.

        Args:
            query: Trimmed, non-empty query text.
            scope: Endpoint to search.
            page: 1-based page number.

        Returns:
            Raw records in upstream order.
        """
        ...
