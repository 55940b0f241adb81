"""
Prometheus Metrics Module

Provides metrics collection for monitoring engine performance,
customer lookups and offer dispatch.
"""

import time
from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
    start_http_server,
)

from .logging import get_logger

logger = get_logger("metrics")

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

# Engine Metrics
engine_invocations = Counter(
    "customer_analysis_engine_invocations_total",
    "Total number of analytical engine invocations",
    ["engine", "status"],  # status: success, failure
    registry=REGISTRY,
)

engine_duration = Histogram(
    "customer_analysis_engine_duration_seconds",
    "Analytical engine execution duration in seconds",
    ["engine"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=REGISTRY,
)

# Lookup Metrics
lookups = Counter(
    "customer_analysis_lookups_total",
    "Interesting customer lookups by outcome",
    ["outcome"],  # outcome: found, exhausted
    registry=REGISTRY,
)

customers_found = Histogram(
    "customer_analysis_customers_found",
    "Number of customers returned by a successful lookup",
    [],
    buckets=(0, 1, 5, 10, 25, 50, 100, 500),
    registry=REGISTRY,
)

# Offer Metrics
offers = Counter(
    "customer_analysis_offers_total",
    "Offers by dispatch stage",
    ["stage"],  # stage: persisted, scheduled, failed
    registry=REGISTRY,
)

prepare_duration = Histogram(
    "customer_analysis_prepare_duration_seconds",
    "End-to-end duration of preparing offers for one product",
    [],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=REGISTRY,
)


class MetricsCollector:
    """
    Centralized metrics collection for the application.

    Provides a convenient interface for recording metrics from the
    orchestrator and its collaborators.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def start_metrics_server(self, port: int = 9090):
        """Start the Prometheus metrics HTTP server."""
        if not self.enabled:
            logger.info("metrics_server_disabled")
            return

        start_http_server(port, registry=REGISTRY)
        logger.info("metrics_server_started", port=port)

    def get_metrics(self) -> bytes:
        """Get the current metrics in Prometheus format."""
        if not self.enabled:
            return b""
        return generate_latest(REGISTRY)

    # Engine metrics
    def record_engine_success(self, engine: str, duration: float):
        if not self.enabled:
            return
        engine_invocations.labels(engine=engine, status="success").inc()
        engine_duration.labels(engine=engine).observe(duration)

    def record_engine_failure(self, engine: str, duration: float):
        if not self.enabled:
            return
        engine_invocations.labels(engine=engine, status="failure").inc()
        engine_duration.labels(engine=engine).observe(duration)

    # Lookup metrics
    def record_lookup(self, found: bool, customer_count: int = 0):
        """Record the outcome of a full lookup across the engine list."""
        if not self.enabled:
            return
        lookups.labels(outcome="found" if found else "exhausted").inc()
        if found:
            customers_found.observe(customer_count)

    # Offer metrics
    def record_offer(self, stage: str):
        if not self.enabled:
            return
        offers.labels(stage=stage).inc()

    def record_prepare_duration(self, start_time: float):
        if not self.enabled:
            return
        prepare_duration.observe(time.time() - start_time)


# Global metrics collector instance
metrics = MetricsCollector()


def get_metrics_collector(enabled: Optional[bool] = None) -> MetricsCollector:
    """
    Return the shared collector, or a separate one when ``enabled`` differs
    from it. The shared collector is never toggled.
    """
    if enabled is None or enabled == metrics.enabled:
        return metrics
    return MetricsCollector(enabled=enabled)
