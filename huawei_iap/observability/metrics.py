"""
Metrics Collection with Prometheus.

Counts token exchanges and verification outcomes. The SDK does not expose an
HTTP endpoint; embedders scrape the default prometheus_client registry.
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from prometheus_client import Counter, Histogram


class MetricLabels(str, Enum):
    """Standard metric label names."""

    OPERATION = "operation"
    OUTCOME = "outcome"


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    REJECTED = "rejected"
    ERROR = "error"


class IAPMetrics:
    """
    Centralized metrics for the Huawei IAP client.

    Covers:
    - Token requests (success/failure)
    - Verifications per operation (success/rejected/error)
    - Verification latency per operation
    """

    def __init__(self) -> None:
        self.token_requests_total = Counter(
            "huawei_iap_token_requests_total",
            "Access token requests made to the OAuth endpoint",
            [MetricLabels.OUTCOME.value],
        )

        self.verifications_total = Counter(
            "huawei_iap_verifications_total",
            "Purchase verification calls",
            [MetricLabels.OPERATION.value, MetricLabels.OUTCOME.value],
        )

        self.verification_duration_seconds = Histogram(
            "huawei_iap_verification_duration_seconds",
            "Purchase verification duration in seconds",
            [MetricLabels.OPERATION.value],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

    def record_token_request(self, outcome: Outcome) -> None:
        self.token_requests_total.labels(outcome=outcome.value).inc()

    def record_verification(self, operation: str, outcome: Outcome) -> None:
        self.verifications_total.labels(operation=operation, outcome=outcome.value).inc()

    @contextmanager
    def time_verification(self, operation: str) -> Iterator[None]:
        """Observe the duration of the enclosed verification call."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.verification_duration_seconds.labels(operation=operation).observe(
                time.perf_counter() - start
            )


# Global metrics instance
metrics = IAPMetrics()
