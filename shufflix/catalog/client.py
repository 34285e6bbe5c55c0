"""Async TMDB client with retries, provider enrichment and failure isolation."""

import asyncio
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from types import TracebackType
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from shufflix.catalog.config import CatalogConfig
from shufflix.catalog.constants import (
    DISCOVER_MIN_VOTES,
    DISCOVER_MONETIZATION_TYPES,
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
    MAX_ENRICHED_PER_PAGE,
    MAX_RETRY_AFTER_SECONDS,
)
from shufflix.catalog.mapping import infer_media_kind, to_candidates
from shufflix.catalog.metrics import CatalogMetrics
from shufflix.catalog.models import (
    CatalogError,
    CatalogErrorClass,
    Feed,
    RawCandidate,
    SearchScope,
)
from shufflix.catalog.providers import build_provider_links
from shufflix.data_model import Candidate, MediaKind


logger = structlog.get_logger()


_FEED_PATHS: dict[Feed, str] = {
    Feed.TRENDING_WEEK: "trending/all/week",
    Feed.TRENDING_DAY: "trending/all/day",
    Feed.POPULAR_MOVIE: "movie/popular",
    Feed.POPULAR_TV: "tv/popular",
    Feed.TOP_MOVIE: "movie/top_rated",
    Feed.TOP_TV: "tv/top_rated",
    Feed.DISCOVER_MOVIE: "discover/movie",
    Feed.DISCOVER_TV: "discover/tv",
}


class TmdbCatalogClient:
    """Catalog client for the TMDB v3 API.

    Provides:
    - Feed pages, similar titles and free-text search
    - Retry with jittered exponential backoff and Retry-After support
    - Per-record decoding so one malformed record never fails a page
    - Watch-provider enrichment with bounded concurrency
    - Metrics collection
    """

    def __init__(
        self,
        api_key: str,
        config: CatalogConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        session_id: str = "-",
    ) -> None:
        """Initialize the client.

        Args:
            api_key: TMDB v3 API key.
            config: Client configuration (defaults apply when None).
            http_client: Pre-built async client (tests inject a mock
                transport). The client is owned and closed only when
                created here.
            session_id: Identifier for logging.
        """
        self._api_key = api_key
        self._config = config or CatalogConfig()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=self._config.timeout_seconds,
            follow_redirects=True,
        )
        self._provider_slots = asyncio.Semaphore(self._config.provider_concurrency)
        self._metrics = CatalogMetrics.get_instance()
        self._log = logger.bind(component="catalog", session_id=session_id)

    async def __aenter__(self) -> "TmdbCatalogClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

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
            Raw records (movies and shows only), provider-enriched when
            enabled.

        Raises:
            CatalogError: If the request fails after retries.
        """
        params: dict[str, Any] = {"page": page}
        if feed.is_discover:
            params.update(
                {
                    "sort_by": "popularity.desc",
                    "include_adult": "false",
                    "vote_count.gte": DISCOVER_MIN_VOTES,
                    "watch_region": self._config.region,
                    "with_watch_monetization_types": DISCOVER_MONETIZATION_TYPES,
                }
            )
            if genre_ids:
                params["with_genres"] = "|".join(str(g) for g in genre_ids)
        elif feed.media_kind == MediaKind.MOVIE:
            params["region"] = self._config.region

        payload = await self._get_json(_FEED_PATHS[feed], params)
        records = self._decode_results(payload, feed.media_kind)
        records = records[:MAX_ENRICHED_PER_PAGE]

        self._log.debug(
            "feed_page_fetched",
            feed=feed.value,
            page=page,
            records=len(records),
        )
        return await self._enrich(records)

    async def fetch_similar(self, title_id: int, media_kind: MediaKind) -> list[Candidate]:
        """Fetch titles similar to the given one.

        Args:
            title_id: Numeric TMDB id.
            media_kind: Kind of the reference title. UNKNOWN yields no
                results without a request.

        Returns:
            Similar candidates in upstream order.

        Raises:
            CatalogError: If the request fails after retries.
        """
        if media_kind == MediaKind.UNKNOWN:
            return []

        payload = await self._get_json(
            f"{media_kind.value}/{title_id}/similar",
            {"page": 1},
        )
        records = self._decode_results(payload, media_kind)
        records = await self._enrich(records[:MAX_ENRICHED_PER_PAGE])
        return to_candidates(records, image_root=self._config.image_root)

    async def search(self, query: str, scope: SearchScope, page: int) -> list[RawCandidate]:
        """Run a free-text search.

        Search results skip provider enrichment to keep typing latency low.

        Args:
            query: Query text.
            scope: Endpoint to search.
            page: 1-based page number.

        Returns:
            Raw records (movies and shows only) in upstream order.

        Raises:
            CatalogError: If the request fails after retries.
        """
        params: dict[str, Any] = {
            "query": query,
            "page": page,
            "include_adult": "false",
        }
        if scope == SearchScope.MOVIE:
            params["region"] = self._config.region

        forced = {
            SearchScope.MULTI: None,
            SearchScope.MOVIE: MediaKind.MOVIE,
            SearchScope.TV: MediaKind.TV,
        }[scope]

        payload = await self._get_json(f"search/{scope.value}", params)
        return self._decode_results(payload, forced)

    def _decode_results(
        self,
        payload: dict[str, Any],
        forced_kind: MediaKind | None,
    ) -> list[RawCandidate]:
        """Decode the ``results`` array record by record.

        Args:
            payload: Decoded response body.
            forced_kind: Kind stamped onto every record for single-kind
                endpoints, or None to keep the upstream labels.

        Returns:
            Valid movie and TV records in upstream order.
        """
        raw_results = payload.get("results")
        if not isinstance(raw_results, list):
            raw_results = []

        records: list[RawCandidate] = []
        rejected = 0
        for item in raw_results:
            try:
                record = RawCandidate.model_validate(item)
            except ValidationError:
                rejected += 1
                continue
            if forced_kind is not None:
                record = record.model_copy(update={"media_type": forced_kind.value})
            if infer_media_kind(record) == MediaKind.UNKNOWN:
                continue
            records.append(record)

        self._metrics.record_records(decoded=len(records), rejected=rejected)
        if rejected:
            self._log.warning("malformed_records_skipped", count=rejected)
        return records

    async def _enrich(self, records: list[RawCandidate]) -> list[RawCandidate]:
        """Attach streaming providers to each record.

        Args:
            records: Records to enrich.

        Returns:
            Records in the same order, with providers where the lookup
            succeeded.
        """
        if not self._config.enrich_providers or not records:
            return records
        return list(await asyncio.gather(*(self._with_providers(r) for r in records)))

    async def _with_providers(self, record: RawCandidate) -> RawCandidate:
        kind = infer_media_kind(record)
        async with self._provider_slots:
            try:
                payload = await self._get_json(f"{kind.value}/{record.id}/watch/providers", {})
            except CatalogError as e:
                # Providers are optional metadata; the title still surfaces
                self._log.debug(
                    "provider_lookup_failed",
                    title_id=record.id,
                    media_kind=kind.value,
                    error_class=e.error_class.value,
                )
                return record

        regions = payload.get("results")
        region = regions.get(self._config.region) if isinstance(regions, dict) else None
        offers = region.get("flatrate") if isinstance(region, dict) else None
        if not isinstance(offers, list):
            return record

        links = build_provider_links(
            [o for o in offers if isinstance(o, dict)],
            self._config.image_root,
        )
        return record.model_copy(update={"providers": links})

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET a TMDB path with retry logic.

        Args:
            path: Path relative to the API root.
            params: Query parameters (key and language are added here).

        Returns:
            Decoded JSON object.

        Raises:
            CatalogError: If the request fails after retries.
        """
        url = f"{self._config.base_url}/{path}"
        query = {
            "api_key": self._api_key,
            "language": self._config.language,
            **params,
        }
        policy = self._config.retry_policy
        log = self._log.bind(path=path)

        attempt = 0
        while True:
            try:
                return await self._execute_single(url, query, log, attempt)
            except CatalogError as e:
                if not policy.should_retry(e, attempt):
                    self._metrics.record_failure(e.error_class.value)
                    log.warning("catalog_request_failed", attempt=attempt, **e.to_dict())
                    raise

                delay_s = policy.get_delay_ms(attempt) / 1000.0
                if e.error_class == CatalogErrorClass.RATE_LIMITED and e.retry_after:
                    log.info("rate_limited", retry_after=e.retry_after, attempt=attempt)
                    delay_s = max(delay_s, min(e.retry_after, MAX_RETRY_AFTER_SECONDS))

                self._metrics.record_retry()
                log.debug(
                    "retry_attempt",
                    attempt=attempt + 1,
                    delay_ms=int(delay_s * 1000),
                    max_retries=policy.max_retries,
                )
                await asyncio.sleep(delay_s)
                attempt += 1

    async def _execute_single(
        self,
        url: str,
        query: dict[str, Any],
        log: structlog.stdlib.BoundLogger,
        attempt: int,
    ) -> dict[str, Any]:
        """Execute a single request.

        Args:
            url: Absolute URL.
            query: Query parameters.
            log: Bound logger.
            attempt: Current attempt number.

        Returns:
            Decoded JSON object.

        Raises:
            CatalogError: On transport, HTTP or decode failure.
        """
        start_ns = time.perf_counter_ns()
        try:
            response = await self._http.get(url, params=query)
        except httpx.TimeoutException as e:
            raise CatalogError(
                CatalogErrorClass.NETWORK_TIMEOUT,
                f"Request timed out: {e}",
            ) from e
        except httpx.ConnectError as e:
            raise CatalogError(
                CatalogErrorClass.CONNECTION_ERROR,
                f"Connection failed: {e}",
            ) from e
        except httpx.HTTPError as e:
            raise CatalogError(
                CatalogErrorClass.UNKNOWN,
                f"Unexpected error: {e}",
            ) from e

        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._metrics.record_request(duration_ms)
        log.debug(
            "catalog_response",
            status_code=response.status_code,
            attempt=attempt,
            duration_ms=round(duration_ms, 2),
        )

        http_error = self._classify_http_error(response)
        if http_error is not None:
            raise http_error

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogError(
                CatalogErrorClass.DECODE,
                "Response body is not valid JSON",
                status_code=response.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise CatalogError(
                CatalogErrorClass.DECODE,
                "Response body is not a JSON object",
                status_code=response.status_code,
            )
        return payload

    def _classify_http_error(self, response: httpx.Response) -> CatalogError | None:
        """Classify an HTTP status as an error.

        Args:
            response: HTTP response.

        Returns:
            CatalogError if the status indicates an error, None otherwise.
        """
        status_code = response.status_code
        if HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX:
            return None

        detail = _status_message(response)

        if status_code == HTTP_STATUS_TOO_MANY_REQUESTS:
            return CatalogError(
                CatalogErrorClass.RATE_LIMITED,
                detail or "Rate limited (429 Too Many Requests)",
                status_code=status_code,
                retry_after=_parse_retry_after(response.headers.get("retry-after")),
            )

        if HTTP_STATUS_BAD_REQUEST <= status_code < HTTP_STATUS_SERVER_ERROR_MIN:
            return CatalogError(
                CatalogErrorClass.HTTP_4XX,
                detail or f"Client error ({status_code})",
                status_code=status_code,
            )

        if HTTP_STATUS_SERVER_ERROR_MIN <= status_code < HTTP_STATUS_SERVER_ERROR_MAX:
            return CatalogError(
                CatalogErrorClass.HTTP_5XX,
                detail or f"Server error ({status_code})",
                status_code=status_code,
            )

        return CatalogError(
            CatalogErrorClass.UNKNOWN,
            f"Unexpected status ({status_code})",
            status_code=status_code,
        )


def _status_message(response: httpx.Response) -> str | None:
    """Extract TMDB's ``status_message`` from an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("status_message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def _parse_retry_after(value: str | None) -> int | None:
    """Parse a Retry-After header value.

    Args:
        value: Header value (seconds or HTTP date).

    Returns:
        Seconds to wait, or None if not parseable.
    """
    if not value:
        return None

    try:
        return int(value)
    except ValueError:
        pass

    try:
        dt = parsedate_to_datetime(value)
        delta = dt - datetime.now(UTC)
        return max(0, int(delta.total_seconds()))
    except (ValueError, TypeError):
        pass

    return None
