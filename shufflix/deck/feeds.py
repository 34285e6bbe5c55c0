"""Round-robin feed scheduling with per-feed page cursors."""

import random
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from shufflix.catalog import GENRE_IDS, CatalogClient, CatalogError, Feed
from shufflix.catalog.constants import TMDB_IMAGE_ROOT
from shufflix.catalog.mapping import to_candidates
from shufflix.data_model import Candidate, Filters, TitleKey
from shufflix.deck.cancellation import CancellationToken
from shufflix.deck.metrics import DeckMetrics
from shufflix.deck.pool import CandidatePool


logger = structlog.get_logger()


@dataclass(frozen=True)
class FeedError:
    """A feed-local fetch failure recorded during a rotation."""

    feed: Feed
    page: int
    message: str
    error_class: str


@dataclass
class FeedBatch:
    """Result of one scheduler call.

    Attributes:
        items: Fresh, shuffled candidates (empty if the rotation found none).
        feed: Feed that produced the items, if any.
        errors: Feed-local failures, in rotation order.
        skipped_feeds: Feeds passed over because of the kind filter.
    """

    items: list[Candidate] = field(default_factory=list)
    feed: Feed | None = None
    errors: list[FeedError] = field(default_factory=list)
    skipped_feeds: list[Feed] = field(default_factory=list)

    @property
    def first_error(self) -> str | None:
        """Message of the first failure in this rotation."""
        return self.errors[0].message if self.errors else None


class FeedScheduler:
    """Rotates through named feeds, one fresh batch per call.

    Each feed owns an independent page cursor starting at 1. The cursor
    advances on every attempt, including attempts that fail, yield nothing
    usable, or are skipped by the kind filter. The rotation index persists
    across calls so feeds are visited fairly.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        pool: CandidatePool,
        feeds: Sequence[Feed] = tuple(Feed),
        rng: random.Random | None = None,
        image_root: str = TMDB_IMAGE_ROOT,
        session_id: str = "-",
    ) -> None:
        """Initialize the scheduler.

        Args:
            catalog: Source of feed pages.
            pool: Session pool; members are never returned again.
            feeds: Feeds in rotation order.
            rng: Random source for batch shuffling.
            image_root: Root of the image CDN used when mapping records.
            session_id: Session identifier for logging.
        """
        if not feeds:
            msg = "at least one feed is required"
            raise ValueError(msg)
        self._catalog = catalog
        self._pool = pool
        self._feeds = tuple(feeds)
        self._rng = rng or random.Random()  # noqa: S311
        self._image_root = image_root
        self._cursors: dict[Feed, int] = dict.fromkeys(self._feeds, 1)
        self._rotation_index = 0
        self._metrics = DeckMetrics.get_instance()
        self._log = logger.bind(component="feeds", session_id=session_id)

    @property
    def feeds(self) -> tuple[Feed, ...]:
        return self._feeds

    @property
    def rotation_index(self) -> int:
        return self._rotation_index

    def page_for(self, feed: Feed) -> int:
        """Next page that will be requested for a feed."""
        return self._cursors[feed]

    def reset(self) -> None:
        """Set every cursor back to page 1 and the rotation to the first feed."""
        self._cursors = dict.fromkeys(self._feeds, 1)
        self._rotation_index = 0

    async def fetch_next_batch(
        self,
        excluded: set[TitleKey],
        filters: Filters,
        token: CancellationToken,
    ) -> FeedBatch:
        """Visit each feed at most once and return the first fresh batch.

        Args:
            excluded: Identities never to return (the blocked set).
            filters: Active filters; the kind decides which feeds are
                queried and genres are forwarded to discover feeds.
            token: Cancellation token checked before every attempt.

        Returns:
            FeedBatch whose items are empty when a full rotation found
            nothing fresh.

        Raises:
            LoadCancelledError: If the token is cancelled between attempts.
        """
        batch = FeedBatch()
        genre_ids = sorted(GENRE_IDS[g] for g in filters.genres if g in GENRE_IDS)

        for _ in range(len(self._feeds)):
            token.raise_if_cancelled()

            feed = self._feeds[self._rotation_index % len(self._feeds)]
            self._rotation_index += 1
            page = self._cursors[feed]
            self._cursors[feed] = page + 1

            if not filters.allows_media(feed.media_kind):
                batch.skipped_feeds.append(feed)
                self._metrics.record_feed_skipped()
                continue

            try:
                records = await self._catalog.fetch(
                    feed,
                    page,
                    genre_ids if feed.is_discover else (),
                )
            except Exception as e:  # noqa: BLE001
                error_class = (
                    e.error_class.value if isinstance(e, CatalogError) else type(e).__name__
                )
                batch.errors.append(FeedError(feed, page, str(e), error_class))
                self._metrics.record_feed_error(feed.value)
                self._log.warning(
                    "feed_fetch_failed",
                    feed=feed.value,
                    page=page,
                    error_class=error_class,
                    error=str(e),
                )
                continue

            fresh: list[Candidate] = []
            taken: set[TitleKey] = set()
            for item in to_candidates(records, image_root=self._image_root):
                key = item.key
                if key in excluded or key in self._pool or key in taken:
                    continue
                taken.add(key)
                fresh.append(item)

            self._log.debug(
                "feed_page_scanned",
                feed=feed.value,
                page=page,
                records=len(records),
                fresh=len(fresh),
            )

            if fresh:
                self._rng.shuffle(fresh)
                batch.items = fresh
                batch.feed = feed
                return batch

        return batch
