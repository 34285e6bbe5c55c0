"""Unit tests for catalog retry policy decisions."""

import pytest

from shufflix.catalog import CatalogError, CatalogErrorClass, RetryPolicy


class TestRetryPolicy:
    """Tests for RetryPolicy model."""

    def test_default_values(self) -> None:
        """Test default retry policy values."""
        policy = RetryPolicy()

        assert policy.max_retries == 1
        assert policy.base_delay_ms == 120
        assert policy.max_delay_ms == 2000
        assert policy.exponential_base == 2.0
        assert policy.jitter_factor == 1.5


class TestShouldRetry:
    """Tests for retry decision logic."""

    @pytest.fixture
    def policy(self) -> RetryPolicy:
        """Create a retry policy with room for several attempts."""
        return RetryPolicy(max_retries=3)

    @pytest.mark.parametrize(
        "error_class",
        [
            CatalogErrorClass.NETWORK_TIMEOUT,
            CatalogErrorClass.CONNECTION_ERROR,
            CatalogErrorClass.HTTP_5XX,
            CatalogErrorClass.RATE_LIMITED,
        ],
    )
    def test_transient_errors_retried(
        self, policy: RetryPolicy, error_class: CatalogErrorClass
    ) -> None:
        """Test that transient failures are retried until max is reached."""
        error = CatalogError(error_class, "transient")

        assert policy.should_retry(error, attempt=0) is True
        assert policy.should_retry(error, attempt=2) is True
        assert policy.should_retry(error, attempt=3) is False

    @pytest.mark.parametrize(
        "error_class",
        [CatalogErrorClass.HTTP_4XX, CatalogErrorClass.DECODE, CatalogErrorClass.UNKNOWN],
    )
    def test_permanent_errors_not_retried(
        self, policy: RetryPolicy, error_class: CatalogErrorClass
    ) -> None:
        """Test that client, decode and unknown errors fail immediately."""
        error = CatalogError(error_class, "permanent", status_code=404)

        assert policy.should_retry(error, attempt=0) is False

    def test_zero_max_retries(self) -> None:
        """Test policy with zero max retries."""
        policy = RetryPolicy(max_retries=0)
        error = CatalogError(CatalogErrorClass.HTTP_5XX, "Server Error", status_code=500)

        assert policy.should_retry(error, attempt=0) is False


class TestGetDelayMs:
    """Tests for retry delay calculation."""

    def test_exponential_backoff(self) -> None:
        """Test that delays increase exponentially."""
        policy = RetryPolicy(base_delay_ms=100, max_delay_ms=10_000, jitter_factor=0.0)

        assert policy.get_delay_ms(0) == 100
        assert policy.get_delay_ms(1) == 200
        assert policy.get_delay_ms(2) == 400

    def test_max_delay_cap(self) -> None:
        """Test that delay is capped at max_delay_ms before jitter."""
        policy = RetryPolicy(base_delay_ms=1000, max_delay_ms=1500, jitter_factor=0.0)

        assert policy.get_delay_ms(1) == 1500
        assert policy.get_delay_ms(8) == 1500

    def test_jitter_bounds(self) -> None:
        """Test default jitter stays within 1x to 2.5x of the base delay."""
        policy = RetryPolicy()

        for _ in range(20):
            assert 120 <= policy.get_delay_ms(0) <= 300


class TestCatalogError:
    """Tests for CatalogError."""

    def test_to_dict(self) -> None:
        """Test structured rendering for logs."""
        error = CatalogError(
            CatalogErrorClass.RATE_LIMITED,
            "Too Many Requests",
            status_code=429,
            retry_after=3,
        )

        assert error.retry_after == 3
        assert str(error) == "Too Many Requests"
        assert error.to_dict() == {
            "error_class": "RATE_LIMITED",
            "message": "Too Many Requests",
            "status_code": 429,
        }
