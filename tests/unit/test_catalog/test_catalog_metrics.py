"""Unit tests for catalog metrics."""

from collections.abc import Generator

import pytest

from shufflix.catalog import CatalogMetrics


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None]:
    """Reset catalog metrics around each test."""
    CatalogMetrics.reset()
    yield
    CatalogMetrics.reset()


class TestCatalogMetrics:
    """Tests for CatalogMetrics."""

    def test_singleton(self) -> None:
        """Test get_instance returns one shared instance until reset."""
        first = CatalogMetrics.get_instance()
        assert CatalogMetrics.get_instance() is first

        CatalogMetrics.reset()
        assert CatalogMetrics.get_instance() is not first

    def test_percentiles(self) -> None:
        """Test duration percentiles over recorded requests."""
        metrics = CatalogMetrics.get_instance()
        for duration in range(1, 101):
            metrics.record_request(float(duration))

        percentiles = metrics.get_duration_percentiles()

        assert percentiles == {"p50": 51.0, "p90": 91.0, "p99": 100.0}
        assert metrics.requests_total == 100

    def test_empty_percentiles(self) -> None:
        """Test percentiles are zero without requests."""
        assert CatalogMetrics.get_instance().get_duration_percentiles() == {
            "p50": 0.0,
            "p90": 0.0,
            "p99": 0.0,
        }

    def test_to_dict(self) -> None:
        """Test the dictionary form used for logging."""
        metrics = CatalogMetrics.get_instance()
        metrics.record_retry()
        metrics.record_failure("HTTP_5XX")
        metrics.record_failure("HTTP_5XX")
        metrics.record_records(decoded=18, rejected=2)

        data = metrics.to_dict()

        assert data["retries_total"] == 1
        assert data["failures_by_class"] == {"HTTP_5XX": 2}
        assert data["records_decoded"] == 18
        assert data["records_rejected"] == 2
