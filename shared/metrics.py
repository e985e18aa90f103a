"""
Shared metrics configuration for the Store Services credential layer.
"""

from typing import Dict, Any, Optional
import time
import threading
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, CollectorRegistry


class MetricsCollector:
    """Centralized metrics collector for credential operations.

    Metrics are created against ``registry``; with the default of ``None``
    they are not registered anywhere, so independent collectors (one per
    issuer in tests, for instance) never clash on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up token issuance and refresh metrics."""
        self._metrics["token_requests_total"] = Counter(
            "token_requests_total",
            "Total client-credentials token requests",
            ["audience", "status"],
            registry=self.registry
        )

        self._metrics["token_request_duration_seconds"] = Histogram(
            "token_request_duration_seconds",
            "Token request duration in seconds",
            ["audience"],
            registry=self.registry
        )

        self._metrics["store_id_refresh_total"] = Counter(
            "store_id_refresh_total",
            "Total store id refresh attempts",
            ["key_type", "status"],
            registry=self.registry
        )

        self._metrics["store_id_refresh_duration_seconds"] = Histogram(
            "store_id_refresh_duration_seconds",
            "Store id refresh duration in seconds",
            ["key_type"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**labels).observe(duration)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            with self._lock:
                self._metrics[metric_name].labels(**labels).inc()


def get_metrics_collector(registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector, unregistered unless a registry is given."""
    return MetricsCollector(registry)
