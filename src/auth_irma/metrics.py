"""
Prometheus metrics for the IRMA authentication bridge.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

from . import __version__


class BridgeMetrics:
    """Prometheus metrics collector for the bridge."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.service_info = Info(
            "auth_irma_service",
            "IRMA authentication bridge information",
            registry=self.registry,
        )

        self.sessions_started_total = Counter(
            "auth_irma_sessions_started_total",
            "Number of disclosure sessions started",
            ["flow"],
            registry=self.registry,
        )

        self.session_results_total = Counter(
            "auth_irma_session_results_total",
            "Number of session results sealed, by outcome",
            ["flow", "outcome"],
            registry=self.registry,
        )

        self.result_delivery_failures_total = Counter(
            "auth_irma_result_delivery_failures_total",
            "Number of out-of-band result deliveries that failed",
            registry=self.registry,
        )

        self.irma_request_duration_seconds = Histogram(
            "auth_irma_disclosure_server_request_duration_seconds",
            "Duration of requests to the IRMA server in seconds",
            ["operation"],
            registry=self.registry,
        )

        self.service_info.info({"version": __version__, "service": "auth-irma"})

    def session_started(self, flow: str) -> None:
        self.sessions_started_total.labels(flow=flow).inc()

    def session_result(self, flow: str, outcome: str) -> None:
        self.session_results_total.labels(flow=flow, outcome=outcome).inc()

    def delivery_failed(self) -> None:
        self.result_delivery_failures_total.inc()

    @contextmanager
    def time_irma_request(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.irma_request_duration_seconds.labels(operation=operation).observe(
                time.perf_counter() - start
            )

    def export(self) -> bytes:
        """Render all metrics in the Prometheus text format."""
        return generate_latest(self.registry)
