"""In-memory collaborators for deck and search tests."""

import asyncio
from collections.abc import Callable, Sequence

from shufflix.catalog import Feed, RawCandidate, SearchScope
from shufflix.data_model import Candidate, MediaKind, ProviderLink, TitleKey


def make_raw(
    title_id: int,
    name: str = "Title",
    media_type: str | None = "movie",
    year: str = "2020",
    votes: int | None = None,
    rating: float | None = None,
    genre_ids: Sequence[int] = (),
) -> RawCandidate:
    """Create a RawCandidate as a list endpoint would return it."""
    is_tv = media_type == "tv"
    return RawCandidate(
        id=title_id,
        title=None if is_tv else name,
        name=name if is_tv else None,
        release_date=None if is_tv else f"{year}-01-01",
        first_air_date=f"{year}-01-01" if is_tv else None,
        media_type=media_type,
        genre_ids=list(genre_ids),
        vote_average=rating,
        vote_count=votes,
    )


def make_candidate(
    title_id: int,
    name: str = "Title",
    media_kind: MediaKind = MediaKind.MOVIE,
    year: str = "2020",
    votes: int | None = None,
    rating: float | None = None,
    genres: Sequence[str] = (),
    providers: Sequence[str] = (),
) -> Candidate:
    """Create a Candidate directly."""
    return Candidate(
        id=title_id,
        media_kind=media_kind,
        name=name,
        year=year,
        genres=tuple(genres),
        providers=tuple(ProviderLink(name=p, url=f"https://example.com/{p}") for p in providers),
        rating=rating,
        vote_count=votes,
    )


def unique_pages(per_page: int = 5) -> Callable[[Feed, int], list[RawCandidate]]:
    """Page generator yielding ``per_page`` never-repeating records per (feed, page).

    Trending feeds alternate movies and shows; dedicated feeds return
    their own kind.
    """
    feed_offset = {feed: index for index, feed in enumerate(Feed)}

    def generate(feed: Feed, page: int) -> list[RawCandidate]:
        records = []
        for i in range(per_page):
            title_id = (feed_offset[feed] + 1) * 100_000 + page * 100 + i
            kind = feed.media_kind
            if kind is None:
                media_type = "movie" if i % 2 == 0 else "tv"
            else:
                media_type = kind.value
            records.append(make_raw(title_id, f"{feed.value} {page}-{i}", media_type))
        return records

    return generate


class FakeCatalog:
    """CatalogClient double that records every call.

    Pages come from ``generator`` when set, otherwise from ``pages``.
    ``errors`` maps a feed to the exception its fetches raise. When
    ``gate`` is set, every fetch waits for it before returning;
    ``similar_gate`` does the same for similar-title lookups.
    """

    def __init__(
        self,
        pages: dict[Feed, dict[int, list[RawCandidate]]] | None = None,
        generator: Callable[[Feed, int], list[RawCandidate]] | None = None,
    ) -> None:
        self.pages = pages or {}
        self.generator = generator
        self.errors: dict[Feed, Exception] = {}
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[Feed, int, tuple[int, ...]]] = []

        self.similar: dict[TitleKey, list[Candidate]] = {}
        self.similar_error: Exception | None = None
        self.similar_gate: asyncio.Event | None = None
        self.similar_calls: list[TitleKey] = []

        self.search_pages: dict[tuple[SearchScope, int], list[RawCandidate]] = {}
        self.search_error: Exception | None = None
        self.search_calls: list[tuple[str, SearchScope, int]] = []

    @property
    def fetched_feeds(self) -> list[Feed]:
        return [feed for feed, _, _ in self.calls]

    async def fetch(
        self,
        feed: Feed,
        page: int,
        genre_ids: Sequence[int] = (),
    ) -> list[RawCandidate]:
        self.calls.append((feed, page, tuple(genre_ids)))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if feed in self.errors:
            raise self.errors[feed]
        if self.generator is not None:
            return self.generator(feed, page)
        return list(self.pages.get(feed, {}).get(page, []))

    async def fetch_similar(self, title_id: int, media_kind: MediaKind) -> list[Candidate]:
        key = TitleKey(title_id, media_kind)
        self.similar_calls.append(key)
        if self.similar_gate is not None:
            await self.similar_gate.wait()
        else:
            await asyncio.sleep(0)
        if self.similar_error is not None:
            raise self.similar_error
        return list(self.similar.get(key, []))

    async def search(self, query: str, scope: SearchScope, page: int) -> list[RawCandidate]:
        self.search_calls.append((query, scope, page))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.search_error is not None:
            raise self.search_error
        return list(self.search_pages.get((scope, page), []))


class FakeSync:
    """SyncNotifier double that records swipes and can be made to fail."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.swipes: list[tuple[TitleKey, bool]] = []

    async def record_swipe(self, item: Candidate, liked: bool) -> None:
        await asyncio.sleep(0)
        if self.fail:
            msg = "sync unavailable"
            raise RuntimeError(msg)
        self.swipes.append((item.key, liked))
