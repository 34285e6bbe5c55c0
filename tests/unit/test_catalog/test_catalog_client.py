"""Unit tests for the TMDB catalog client using a mock transport."""

from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest

from shufflix.catalog import (
    CatalogConfig,
    CatalogError,
    CatalogErrorClass,
    CatalogMetrics,
    Feed,
    RetryPolicy,
    SearchScope,
    TmdbCatalogClient,
)
from shufflix.data_model import MediaKind


BASE_URL = "https://api.test/3"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None]:
    """Reset catalog metrics around each test."""
    CatalogMetrics.reset()
    yield
    CatalogMetrics.reset()


def _config(enrich: bool = False, max_retries: int = 1) -> CatalogConfig:
    return CatalogConfig(
        base_url=BASE_URL,
        enrich_providers=enrich,
        retry_policy=RetryPolicy(
            max_retries=max_retries,
            base_delay_ms=0,
            max_delay_ms=0,
            jitter_factor=0.0,
        ),
    )


def _make_client(handler: Handler, enrich: bool = False, max_retries: int = 1) -> TmdbCatalogClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TmdbCatalogClient("test-key", _config(enrich, max_retries), http_client=http)


def _results(*records: dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json={"page": 1, "results": list(records)})


class TestFetch:
    """Tests for feed page fetching."""

    @pytest.mark.asyncio
    async def test_popular_movie_request(self) -> None:
        """Test path, auth, language and region parameters."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _results({"id": 1, "title": "A"}, {"id": 2, "title": "B"})

        client = _make_client(handler)
        records = await client.fetch(Feed.POPULAR_MOVIE, 3)

        assert [r.id for r in records] == [1, 2]
        assert all(r.media_type == "movie" for r in records)
        request = seen[0]
        assert request.url.path == "/3/movie/popular"
        assert request.url.params["api_key"] == "test-key"
        assert request.url.params["language"] == "en-US"
        assert request.url.params["page"] == "3"
        assert request.url.params["region"] == "US"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_discover_genre_constraint(self) -> None:
        """Test discover feeds pass genre ids joined with a pipe."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _results()

        client = _make_client(handler)
        await client.fetch(Feed.DISCOVER_TV, 1, genre_ids=[18, 35])

        params = seen[0].url.params
        assert seen[0].url.path == "/3/discover/tv"
        assert params["with_genres"] == "18|35"
        assert params["watch_region"] == "US"
        assert params["sort_by"] == "popularity.desc"
        assert "region" not in params
        await client.aclose()

    @pytest.mark.asyncio
    async def test_malformed_and_non_title_records_dropped(self) -> None:
        """Test one bad record never fails the page."""

        def handler(request: httpx.Request) -> httpx.Response:
            return _results(
                {"id": 1, "title": "Good", "media_type": "movie"},
                {"title": "No id"},
                {"id": 3, "name": "A Person", "media_type": "person"},
                {"id": 4, "name": "Show", "media_type": "tv"},
            )

        client = _make_client(handler)
        records = await client.fetch(Feed.TRENDING_WEEK, 1)

        assert [r.id for r in records] == [1, 4]
        assert CatalogMetrics.get_instance().records_rejected == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_provider_enrichment(self) -> None:
        """Test flatrate providers for the configured region are attached."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/watch/providers"):
                return httpx.Response(
                    200,
                    json={
                        "results": {
                            "US": {
                                "flatrate": [
                                    {"provider_id": 8, "provider_name": "Netflix", "logo_path": "/n.png"}
                                ]
                            },
                            "GB": {"flatrate": [{"provider_id": 9, "provider_name": "Amazon Prime Video"}]},
                        }
                    },
                )
            return _results({"id": 10, "title": "Film"})

        client = _make_client(handler, enrich=True)
        records = await client.fetch(Feed.TOP_MOVIE, 1)

        assert [p.name for p in records[0].providers] == ["Netflix"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_provider_failure_keeps_title(self) -> None:
        """Test a failed provider lookup leaves the record unenriched."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/watch/providers"):
                return httpx.Response(404, json={"status_message": "Not found"})
            return _results({"id": 10, "name": "Show"})

        client = _make_client(handler, enrich=True)
        records = await client.fetch(Feed.POPULAR_TV, 1)

        assert [r.id for r in records] == [10]
        assert records[0].providers == ()
        await client.aclose()


class TestRetries:
    """Tests for retry and error classification."""

    @pytest.mark.asyncio
    async def test_5xx_retried_then_succeeds(self) -> None:
        """Test a transient server error is retried."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                return httpx.Response(503)
            return _results({"id": 1, "title": "A"})

        client = _make_client(handler)
        records = await client.fetch(Feed.TRENDING_DAY, 1)

        assert calls == 2
        assert len(records) == 1
        assert CatalogMetrics.get_instance().retries_total == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_5xx_exhausts_retries(self) -> None:
        """Test the error surfaces once retries run out."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500)

        client = _make_client(handler, max_retries=2)
        with pytest.raises(CatalogError) as exc_info:
            await client.fetch(Feed.TRENDING_DAY, 1)

        assert calls == 3
        assert exc_info.value.error_class == CatalogErrorClass.HTTP_5XX
        assert CatalogMetrics.get_instance().failures_by_class == {"HTTP_5XX": 1}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_4xx_not_retried_and_uses_status_message(self) -> None:
        """Test client errors fail fast with the upstream message."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(401, json={"status_message": "Invalid API key: You must be granted a valid key."})

        client = _make_client(handler)
        with pytest.raises(CatalogError) as exc_info:
            await client.fetch(Feed.TRENDING_DAY, 1)

        assert calls == 1
        assert exc_info.value.error_class == CatalogErrorClass.HTTP_4XX
        assert exc_info.value.status_code == 401
        assert exc_info.value.message.startswith("Invalid API key")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_429_classified_with_retry_after(self) -> None:
        """Test rate limiting is retried and carries Retry-After."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(429, headers={"Retry-After": "0"})

        client = _make_client(handler)
        with pytest.raises(CatalogError) as exc_info:
            await client.fetch(Feed.TRENDING_DAY, 1)

        assert calls == 2
        assert exc_info.value.error_class == CatalogErrorClass.RATE_LIMITED
        assert exc_info.value.retry_after == 0
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout_classified(self) -> None:
        """Test transport timeouts map to NETWORK_TIMEOUT."""

        def handler(request: httpx.Request) -> httpx.Response:
            msg = "timed out"
            raise httpx.ReadTimeout(msg, request=request)

        client = _make_client(handler, max_retries=0)
        with pytest.raises(CatalogError) as exc_info:
            await client.fetch(Feed.TRENDING_DAY, 1)

        assert exc_info.value.error_class == CatalogErrorClass.NETWORK_TIMEOUT
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connect_error_classified(self) -> None:
        """Test connection failures map to CONNECTION_ERROR."""

        def handler(request: httpx.Request) -> httpx.Response:
            msg = "refused"
            raise httpx.ConnectError(msg, request=request)

        client = _make_client(handler, max_retries=0)
        with pytest.raises(CatalogError) as exc_info:
            await client.fetch(Feed.TRENDING_DAY, 1)

        assert exc_info.value.error_class == CatalogErrorClass.CONNECTION_ERROR
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json_is_decode_error(self) -> None:
        """Test a non-JSON body is a DECODE failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        client = _make_client(handler)
        with pytest.raises(CatalogError) as exc_info:
            await client.fetch(Feed.TRENDING_DAY, 1)

        assert exc_info.value.error_class == CatalogErrorClass.DECODE
        await client.aclose()


class TestSimilarAndSearch:
    """Tests for similar-title lookup and search."""

    @pytest.mark.asyncio
    async def test_similar_unknown_kind_makes_no_request(self) -> None:
        """Test UNKNOWN titles have no similar lookup."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return _results()

        client = _make_client(handler)
        assert await client.fetch_similar(5, MediaKind.UNKNOWN) == []
        assert calls == 0
        await client.aclose()

    @pytest.mark.asyncio
    async def test_similar_maps_candidates_of_reference_kind(self) -> None:
        """Test similar titles inherit the reference title's kind."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return _results({"id": 6, "name": "Sibling", "first_air_date": "2011-04-17"})

        client = _make_client(handler)
        similar = await client.fetch_similar(5, MediaKind.TV)

        assert seen == ["/3/tv/5/similar"]
        assert [c.key for c in similar] == [(6, MediaKind.TV)]
        assert similar[0].year == "2011"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_search_multi(self) -> None:
        """Test multi search keeps upstream labels and drops people."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _results(
                {"id": 1, "title": "Dune", "media_type": "movie"},
                {"id": 2, "name": "Frank Herbert", "media_type": "person"},
            )

        client = _make_client(handler)
        records = await client.search("dune", SearchScope.MULTI, 2)

        assert [r.id for r in records] == [1]
        assert seen[0].url.path == "/3/search/multi"
        assert seen[0].url.params["query"] == "dune"
        assert seen[0].url.params["include_adult"] == "false"
        assert "region" not in seen[0].url.params
        await client.aclose()

    @pytest.mark.asyncio
    async def test_search_tv_forces_kind(self) -> None:
        """Test single-kind search stamps its kind onto records."""

        def handler(request: httpx.Request) -> httpx.Response:
            return _results({"id": 1, "name": "Dark"})

        client = _make_client(handler)
        records = await client.search("dark", SearchScope.TV, 1)

        assert records[0].media_type == "tv"
        await client.aclose()
