"""Catalog search composed with ranking, rescue and session state."""

import asyncio

import structlog

from shufflix.catalog import (
    CatalogClient,
    CatalogError,
    CatalogErrorClass,
    RawCandidate,
    SearchScope,
)
from shufflix.catalog.constants import MAX_QUICK_MAPPED, TMDB_IMAGE_ROOT
from shufflix.catalog.mapping import infer_media_kind, to_candidates
from shufflix.config.schemas import SearchConfig
from shufflix.data_model import Candidate, ContentKind, TitleKey
from shufflix.search.normalize import normalize
from shufflix.search.ranker import rank
from shufflix.search.rescue import needs_rescue, rescue


logger = structlog.get_logger()


async def search_titles(
    catalog: CatalogClient,
    query: str,
    kind: ContentKind = ContentKind.ALL,
    config: SearchConfig | None = None,
    image_root: str = TMDB_IMAGE_ROOT,
) -> list[Candidate]:
    """Search the catalog and rank the merged results.

    For ALL, multi-search pages are requested concurrently together with
    the first TV and movie pages, which recover classics multi-search
    buries. Single-kind searches page through that endpoint in order.

    Args:
        catalog: Catalog to query.
        query: Raw query text.
        kind: Content kind to search.
        config: Paging, limit and rescue settings.
        image_root: Root of the image CDN used when mapping records.

    Returns:
        Ranked candidates, rescued when the ranking is sparse.

    Raises:
        CatalogError: If any search request fails. Requests still in flight
            are cancelled first.
    """
    trimmed = query.strip()
    if not trimmed:
        return []
    cfg = config or SearchConfig()
    pages = range(1, cfg.page_limit + 1)

    buckets: list[list[RawCandidate]]
    if kind == ContentKind.ALL:
        requests = [(SearchScope.MULTI, page) for page in pages]
        requests += [(SearchScope.TV, 1), (SearchScope.MOVIE, 1)]
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [
                    group.create_task(catalog.search(trimmed, scope, page))
                    for scope, page in requests
                ]
        except ExceptionGroup as eg:
            # Siblings are already cancelled; surface the first failure as is
            raise eg.exceptions[0] from None
        buckets = [task.result() for task in tasks]
    else:
        scope = SearchScope.MOVIE if kind == ContentKind.MOVIE else SearchScope.TV
        buckets = [await catalog.search(trimmed, scope, page) for page in pages]

    seen: set[TitleKey] = set()
    merged: list[RawCandidate] = []
    for bucket in buckets:
        for record in bucket:
            key = TitleKey(record.id, infer_media_kind(record))
            if key in seen:
                continue
            seen.add(key)
            merged.append(record)

    quick = to_candidates(merged, limit=MAX_QUICK_MAPPED, image_root=image_root)
    ranked = rank(trimmed, quick, cfg.result_limit)
    if needs_rescue(ranked, cfg.rescue_min_results):
        ranked = rescue(trimmed, quick, ranked)

    logger.debug(
        "search_ranked",
        component="search",
        kind=kind.value,
        fetched=sum(len(b) for b in buckets),
        unique=len(merged),
        results=len(ranked),
    )
    return ranked


def humanize_error(error: Exception) -> str:
    """Turn a search failure into a short message for the user."""
    if isinstance(error, CatalogError):
        if error.error_class == CatalogErrorClass.NETWORK_TIMEOUT:
            return "Network seems down. Try again in a moment."
        if error.error_class == CatalogErrorClass.CONNECTION_ERROR:
            return "Can't reach the server. Please try again shortly."
        if error.message:
            return error.message
        return f"TMDB error {error.status_code or 0}"
    return str(error) or "Something went wrong."


class SearchSession:
    """Search state for one search screen.

    Only the latest submitted search may publish results: a new one
    cancels the one in flight. Identical submissions (same normalized
    query and kind) are skipped unless forced.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        config: SearchConfig | None = None,
        session_id: str = "-",
    ) -> None:
        self._catalog = catalog
        self._config = config or SearchConfig()
        self._results: list[Candidate] = []
        self._error_message: str | None = None
        self._recent: list[str] = []
        self._last_key = ""
        self._task: asyncio.Task[None] | None = None
        self._log = logger.bind(component="search", session_id=session_id)

    @property
    def results(self) -> list[Candidate]:
        return list(self._results)

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def recent_queries(self) -> list[str]:
        """Successful queries, most recent first."""
        return list(self._recent)

    @property
    def is_loading(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(
        self,
        query: str,
        kind: ContentKind = ContentKind.ALL,
        force: bool = False,
    ) -> asyncio.Task[None] | None:
        """Start a search for ``query``.

        Must be called from a running event loop.

        Args:
            query: Raw query text.
            kind: Content kind to search.
            force: Re-run even if identical to the last submission.

        Returns:
            The search task, or None when nothing was started.
        """
        trimmed = query.strip()
        if len(trimmed) < self._config.min_query_length:
            self.clear()
            return None

        key = f"{normalize(trimmed)}#{kind.value}"
        if key == self._last_key and not force:
            return None
        loop = asyncio.get_running_loop()
        self._last_key = key

        self._cancel()
        self._error_message = None
        self._task = loop.create_task(self._run(trimmed, kind), name="search")
        return self._task

    def clear(self) -> None:
        """Cancel any search and reset results, error and dedup key."""
        self._cancel()
        self._results = []
        self._error_message = None
        self._last_key = ""

    def clear_recent_queries(self) -> None:
        self._recent = []

    async def _run(self, query: str, kind: ContentKind) -> None:
        try:
            hits = await search_titles(self._catalog, query, kind, self._config)
        except Exception as e:  # noqa: BLE001
            self._results = []
            self._error_message = humanize_error(e)
            self._log.warning("search_failed", query=query, kind=kind.value, error=str(e))
            return

        self._results = hits
        self._note_query(query)
        self._log.info("search_complete", query=query, kind=kind.value, results=len(hits))

    def _note_query(self, query: str) -> None:
        if self._config.history_limit == 0:
            return
        folded = query.casefold()
        if any(q.casefold() == folded for q in self._recent):
            return
        self._recent.insert(0, query)
        del self._recent[self._config.history_limit :]

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
