"""Metrics collection for the catalog client."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class CatalogMetrics:
    """Metrics for catalog requests.

    Attributes:
        requests_total: Total HTTP requests issued (including retries).
        retries_total: Retry attempts.
        failures_by_class: Exhausted failures per error class.
        records_decoded: Result records decoded successfully.
        records_rejected: Result records dropped as malformed.
        request_durations_ms: Per-request durations for percentiles.
    """

    requests_total: int = 0
    retries_total: int = 0
    failures_by_class: dict[str, int] = field(default_factory=dict)
    records_decoded: int = 0
    records_rejected: int = 0
    request_durations_ms: list[float] = field(default_factory=list)

    _instance: ClassVar["CatalogMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "CatalogMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_request(self, duration_ms: float) -> None:
        """Record a completed HTTP request."""
        self.requests_total += 1
        self.request_durations_ms.append(duration_ms)

    def record_retry(self) -> None:
        """Record a retry attempt."""
        self.retries_total += 1

    def record_failure(self, error_class: str) -> None:
        """Record a request that failed after all retries."""
        self.failures_by_class[error_class] = self.failures_by_class.get(error_class, 0) + 1

    def record_records(self, decoded: int, rejected: int) -> None:
        """Record decoded and rejected result records."""
        self.records_decoded += decoded
        self.records_rejected += rejected

    def get_duration_percentiles(self) -> dict[str, float]:
        """Calculate request duration percentiles (p50/p90/p99).

        Returns:
            Dictionary with p50, p90, p99 values.
        """
        if not self.request_durations_ms:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0}

        ordered = sorted(self.request_durations_ms)
        n = len(ordered)

        def percentile(p: float) -> float:
            idx = int(p * n / 100)
            return ordered[min(idx, n - 1)]

        return {
            "p50": percentile(50),
            "p90": percentile(90),
            "p99": percentile(99),
        }

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary."""
        return {
            "requests_total": self.requests_total,
            "retries_total": self.retries_total,
            "failures_by_class": dict(self.failures_by_class),
            "records_decoded": self.records_decoded,
            "records_rejected": self.records_rejected,
            "duration_percentiles_ms": self.get_duration_percentiles(),
        }
