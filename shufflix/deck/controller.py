"""Deck controller: the visible deck, exclusions, pinning and refill policy."""

import asyncio
import random
from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from shufflix.catalog import CatalogClient
from shufflix.config.schemas import DeckConfig
from shufflix.data_model import Candidate, Filters, TitleKey
from shufflix.deck.cancellation import CancellationToken, LoadCancelledError
from shufflix.deck.exclusion import ExclusionState
from shufflix.deck.feeds import FeedScheduler
from shufflix.deck.metrics import DeckMetrics
from shufflix.deck.pool import CandidatePool
from shufflix.deck.state_machine import DeckState, DeckStateMachine
from shufflix.library import LibraryStore, SyncNotifier


logger = structlog.get_logger()

MAX_STARS = 5


class DeckController:
    """Owns the swipe deck for one session.

    The deck is a list whose last element is the top card. Every addition
    goes in at index 0 so the card the user is looking at never changes
    underneath them. After the first batch lands, the top card is pinned:
    filter changes cannot evict it until the user acts or refreshes.

    All mutation happens synchronously on the event loop that owns the
    controller; loads are tasks that only touch state between awaits.
    At most one load is active at a time.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        library: LibraryStore,
        sync: SyncNotifier | None = None,
        config: DeckConfig | None = None,
        filters: Filters | None = None,
        rng: random.Random | None = None,
        session_id: str = "-",
    ) -> None:
        """Initialize the controller and restore the persisted library.

        Args:
            catalog: Source of feed pages and similar titles.
            library: Persistence collaborator; its snapshot seeds the
                exclusion state.
            sync: Optional remote sync collaborator.
            config: Refill policy.
            filters: Initial filters.
            rng: Random source for batch shuffling.
            session_id: Session identifier for logging.
        """
        self._catalog = catalog
        self._library = library
        self._sync = sync
        self._config = config or DeckConfig()
        self._pool = CandidatePool()
        self._scheduler = FeedScheduler(
            catalog,
            self._pool,
            feeds=self._config.feeds,
            rng=rng,
            session_id=session_id,
        )
        self._exclusions = ExclusionState()
        self._exclusions.restore(library.snapshot())
        self._machine = DeckStateMachine(session_id)
        self._metrics = DeckMetrics.get_instance()
        self._log = logger.bind(component="deck", session_id=session_id)

        self._deck: list[Candidate] = []
        self._filters = filters or Filters()
        self._pinned_key: TitleKey | None = None
        self._error_message: str | None = None
        self._load_task: asyncio.Task[None] | None = None
        self._load_token: CancellationToken | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._injections: set[asyncio.Task[Any]] = set()

    # Read-only surface

    def current_deck(self) -> list[Candidate]:
        """Visible deck, bottom first; the last element is the top card."""
        return list(self._deck)

    @property
    def top_card(self) -> Candidate | None:
        return self._deck[-1] if self._deck else None

    @property
    def liked(self) -> list[Candidate]:
        """Liked titles, newest first."""
        return self._exclusions.liked

    @property
    def skipped_history(self) -> list[Candidate]:
        """Titles skipped this session, oldest first."""
        return self._exclusions.skipped_history

    @property
    def available_providers(self) -> list[str]:
        return self._pool.available_providers

    @property
    def available_genres(self) -> list[str]:
        return self._pool.available_genres

    @property
    def is_loading(self) -> bool:
        return self._load_task is not None and not self._load_task.done()

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def is_primed(self) -> bool:
        return self._machine.is_primed()

    @property
    def state(self) -> DeckState:
        return self._machine.state

    @property
    def pinned_key(self) -> TitleKey | None:
        return self._pinned_key

    @property
    def filters(self) -> Filters:
        return self._filters

    @property
    def pool_size(self) -> int:
        return len(self._pool)

    def is_liked(self, item: Candidate) -> bool:
        return self._exclusions.is_liked(item.key)

    def rating(self, item: Candidate) -> int | None:
        return self._exclusions.rating(item.key)

    def is_watched(self, item: Candidate) -> bool:
        return self._exclusions.is_watched(item.key)

    # Loads

    def refresh_deck(self) -> asyncio.Task[None]:
        """Discard the session's deck and pool and prime from page 1.

        Pending similar-title injections are cancelled with the active load.

        Must be called from a running event loop.

        Returns:
            The load task; awaiting it waits for priming to finish.
        """
        loop = asyncio.get_running_loop()
        self._cancel_active_load()
        for task in self._injections:
            task.cancel()

        self._error_message = None
        self._pinned_key = None
        self._deck.clear()
        self._pool.clear()
        self._scheduler.reset()
        self._machine.transition(DeckState.PRIMING)

        self._log.info("deck_refresh_started")
        return self._start_load(loop, self._config.prefetch_threshold * 2, reason="refresh")

    def load_more(self) -> asyncio.Task[None]:
        """Load at least ``prefetch_threshold`` new cards, superseding any active load.

        Must be called from a running event loop.

        Returns:
            The load task.
        """
        loop = asyncio.get_running_loop()
        self._cancel_active_load()
        return self._start_load(loop, self._config.prefetch_threshold, reason="load_more")

    async def close(self) -> None:
        """Cancel the active load and any background work and wait for them."""
        self._cancel_active_load()
        pending = [t for t in (self._load_task, *self._background) if t is not None]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _start_load(
        self,
        loop: asyncio.AbstractEventLoop,
        minimum: int,
        reason: str,
    ) -> asyncio.Task[None]:
        if self._machine.state == DeckState.COLD:
            self._machine.transition(DeckState.PRIMING)

        token = CancellationToken()
        self._load_token = token
        self._metrics.record_load_started()
        task = loop.create_task(self._run_load(minimum, token, reason), name=f"deck-{reason}")
        self._load_task = task
        return task

    def _cancel_active_load(self) -> None:
        task = self._load_task
        if self._load_token is not None:
            self._load_token.cancel()
        if task is not None and not task.done():
            task.cancel()
            self._metrics.record_load_cancelled()
            self._log.debug("load_superseded", task=task.get_name())

    async def _run_load(self, minimum: int, token: CancellationToken, reason: str) -> None:
        """Drive the scheduler until ``minimum`` cards are admitted.

        Stops early on an empty rotation, and never runs more than
        ``len(feeds) * max_batches_per_feed`` batches.
        """
        max_batches = len(self._scheduler.feeds) * self._config.max_batches_per_feed
        admitted_total = 0
        batches = 0
        reported = False

        try:
            while admitted_total < minimum and batches < max_batches:
                batches += 1
                batch = await self._scheduler.fetch_next_batch(
                    self._exclusions.blocked,
                    self._filters,
                    token,
                )
                token.raise_if_cancelled()

                # First error of this cycle replaces any message left by an earlier one
                if batch.first_error is not None and not reported:
                    self._error_message = batch.first_error
                    reported = True

                if not batch.items:
                    self._mark_primed_if_ready()
                    break

                admitted = self._commit_batch(batch.items)
                admitted_total += admitted
                if admitted and not batch.errors:
                    self._error_message = None
                    reported = False
        except LoadCancelledError:
            self._log.debug("load_cancelled", reason=reason, admitted=admitted_total)
            return

        if self._machine.is_priming() and not self._deck:
            self._machine.transition(DeckState.COLD)

        self._log.info(
            "load_complete",
            reason=reason,
            admitted=admitted_total,
            batches=batches,
            deck_size=len(self._deck),
            error=self._error_message,
        )

    def _commit_batch(self, items: list[Candidate]) -> int:
        """Merge a fetched batch into the pool and the bottom of the deck.

        Returns:
            Number of cards added to the deck.
        """
        added = self._pool.merge(items)
        blocked = self._exclusions.blocked
        on_deck = {c.key for c in self._deck}
        to_queue = [
            c for c in added
            if c.key not in blocked and c.key not in on_deck and self._filters.matches(c)
        ]
        if to_queue:
            self._deck[0:0] = to_queue
        self._mark_primed_if_ready()

        self._metrics.record_batch(len(to_queue))
        self._log.debug(
            "batch_committed",
            pooled=len(added),
            admitted=len(to_queue),
            deck_size=len(self._deck),
        )
        return len(to_queue)

    def _mark_primed_if_ready(self) -> None:
        if not self._machine.is_priming() or not self._deck:
            return
        self._machine.transition(DeckState.PRIMED)
        if self._pinned_key is None:
            self._pinned_key = self._deck[-1].key
        self._log.info("deck_primed", pinned=str(self._pinned_key), deck_size=len(self._deck))

    def _prefetch_if_needed(self) -> None:
        """Start a background load when the deck runs low and none is active."""
        if len(self._deck) >= self._config.prefetch_threshold or self.is_loading:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._log.warning("prefetch_skipped", reason="no_running_loop")
            return
        self._start_load(loop, self._config.prefetch_threshold, reason="prefetch")

    # Filters

    def apply_filters(self, filters: Filters) -> None:
        """Replace the active filters and reconcile the deck.

        Cards failing the new filters leave the deck, except the pinned
        card. Matching pool members not on the deck are added at the
        bottom in pool order. A low deck triggers a background load.

        Args:
            filters: New filters. Equal filters are a no-op.
        """
        if filters == self._filters:
            return
        self._filters = filters

        eligible = self._pool.eligible(filters, self._exclusions.blocked)
        eligible_keys = {c.key for c in eligible}
        before = len(self._deck)
        self._deck = [
            c for c in self._deck if c.key == self._pinned_key or c.key in eligible_keys
        ]
        on_deck = {c.key for c in self._deck}
        missing = [c for c in eligible if c.key not in on_deck]
        if missing:
            self._deck[0:0] = missing

        self._log.info(
            "filters_applied",
            kind=filters.kind.value,
            providers=sorted(filters.providers),
            genres=sorted(filters.genres),
            removed=before - (len(self._deck) - len(missing)),
            added=len(missing),
            deck_size=len(self._deck),
        )

        if len(self._deck) < self._config.prefetch_threshold:
            try:
                self.load_more()
            except RuntimeError:
                self._log.warning("prefetch_skipped", reason="no_running_loop")

    # User actions

    def swipe(self, item: Candidate, liked: bool) -> None:
        """Record a swipe decision on a card.

        Args:
            item: Card that was swiped.
            liked: True for a right swipe.
        """
        self._release_pin()
        self._remove_from_deck(item.key)

        if liked:
            if self._exclusions.like(item):
                self._persist("like", self._library.like, item)
        else:
            self._exclusions.record_skip(item)
            self._persist("mark_skipped", self._library.mark_skipped, item.key)

        self._exclusions.mark_seen(item.key)
        self._metrics.record_swipe(liked)
        self._log.debug("swiped", title=str(item.key), liked=liked)

        self._prefilter_deck()
        self._prefetch_if_needed()
        if self._sync is not None:
            self._spawn(self._sync.record_swipe(item, liked), name="sync-swipe")

    def like_from_detail(self, item: Candidate) -> None:
        """Like a title from its detail view. No-op if already liked."""
        self._release_pin()
        if self._exclusions.is_liked(item.key):
            return
        self._remove_from_deck(item.key)
        self._exclusions.like(item)
        self._exclusions.mark_seen(item.key)
        self._persist("like", self._library.like, item)
        self._prefetch_if_needed()

    def toggle_like(self, item: Candidate) -> None:
        self._release_pin()
        if self._exclusions.unlike(item.key) is not None:
            self._persist("unlike", self._library.unlike, item.key)
            return
        self._exclusions.like(item)
        self._exclusions.mark_seen(item.key)
        self._persist("like", self._library.like, item)
        self._prefilter_deck()

    def remove_liked(self, item: Candidate) -> None:
        """Remove a title from the liked collection."""
        self._release_pin()
        if self._exclusions.unlike(item.key) is None:
            return
        self._persist("unlike", self._library.unlike, item.key)
        self._prefilter_deck()

    def set_rating(self, item: Candidate, stars: int) -> asyncio.Task[Any] | None:
        """Rate a title from 0 to 5 stars.

        Out-of-range values are clamped; 0 removes the rating. A five-star
        rating pulls similar titles into the deck in the background.

        Args:
            item: Title to rate.
            stars: Requested star count.

        Returns:
            The similar-title injection task for five-star ratings, else None.
        """
        clamped = max(0, min(MAX_STARS, stars))
        value = clamped if clamped > 0 else None
        self._exclusions.set_rating(item.key, value)
        self._persist("rate", self._library.rate, item.key, value)

        if clamped >= MAX_STARS:
            task = self._spawn(self.inject_similar(item), name="inject-similar")
            self._injections.add(task)
            task.add_done_callback(self._injections.discard)
            return task
        return None

    def set_watched(self, item: Candidate, watched: bool) -> None:
        """Mark or unmark a title as watched. Watched titles stay eligible."""
        self._exclusions.set_watched(item.key, watched)
        self._persist("set_watched", self._library.set_watched, item.key, watched)

    def toggle_watched(self, item: Candidate) -> None:
        self.set_watched(item, not self.is_watched(item))

    async def inject_similar(self, item: Candidate) -> int:
        """Add up to ``similar_limit`` unseen titles similar to ``item``.

        Bypasses the feed rotation; page cursors are untouched.

        Args:
            item: Reference title.

        Returns:
            Number of cards added to the deck.
        """
        try:
            similar = await self._catalog.fetch_similar(item.id, item.media_kind)
        except Exception as e:  # noqa: BLE001
            self._log.warning("similar_fetch_failed", title=str(item.key), error=str(e))
            return 0

        blocked = self._exclusions.blocked
        on_deck = {c.key for c in self._deck}
        fresh: list[Candidate] = []
        for candidate in similar:
            key = candidate.key
            if key in blocked or key in on_deck or key == item.key:
                continue
            if any(c.key == key for c in fresh):
                continue
            fresh.append(candidate)
            if len(fresh) >= self._config.similar_limit:
                break

        if not fresh:
            return 0

        self._pool.merge(fresh)
        eligible_keys = {c.key for c in self._pool.eligible(self._filters, blocked)}
        to_queue = [c for c in fresh if c.key in eligible_keys]
        if to_queue:
            self._deck[0:0] = to_queue

        self._metrics.record_similar(len(to_queue))
        self._log.info(
            "similar_injected",
            title=str(item.key),
            fetched=len(similar),
            admitted=len(to_queue),
        )
        return len(to_queue)

    # Helpers

    def _release_pin(self) -> None:
        self._pinned_key = None
        if self._machine.is_pinned_phase():
            self._machine.transition(DeckState.STEADY)

    def _remove_from_deck(self, key: TitleKey) -> None:
        for index, card in enumerate(self._deck):
            if card.key == key:
                del self._deck[index]
                return

    def _prefilter_deck(self) -> None:
        """Drop deck cards that became blocked."""
        if not self._deck:
            return
        blocked = self._exclusions.blocked
        self._deck = [c for c in self._deck if c.key == self._pinned_key or c.key not in blocked]

    def _persist(self, action: str, write: Callable[..., None], *args: Any) -> None:
        """Forward a mutation to the library store without letting it fail the UI."""
        try:
            write(*args)
        except Exception as e:  # noqa: BLE001
            self._log.warning("library_write_failed", action=action, error=str(e))

    def _spawn(
        self,
        coro: Coroutine[Any, Any, Any],
        name: str,
    ) -> asyncio.Task[Any] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            self._log.warning("background_task_skipped", task=name, reason="no_running_loop")
            return None
        task = loop.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._log.warning("background_task_failed", task=task.get_name(), error=str(error))
