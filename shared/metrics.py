"""
Self-monitoring metrics for the Kubernetes service exporter.
"""

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry, REGISTRY
from typing import Dict, Any, Optional
import threading


class ExporterMetrics:
    """Centralized self-monitoring metrics for the exporter."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None, version: str = "1.0.0"):
        self.service_name = service_name
        self.version = version
        self.registry = registry if registry is not None else REGISTRY
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up exporter metrics."""

        # Build info
        self._metrics["build_info"] = Info(
            "exporter_build",
            "Exporter build information",
            registry=self.registry
        )
        self._metrics["build_info"].info({
            "service": self.service_name,
            "version": self.version
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "exporter_http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "exporter_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._setup_cache_metrics()

    def _setup_cache_metrics(self):
        """Set up cache synchronizer metrics."""
        self._metrics["cache_events_total"] = Counter(
            "exporter_cache_events_total",
            "Total change events applied to the service cache",
            ["kind"],
            registry=self.registry
        )

        self._metrics["cache_relists_total"] = Counter(
            "exporter_cache_relists_total",
            "Total full lists performed by the service cache",
            ["reason"],
            registry=self.registry
        )

        self._metrics["cache_watch_errors_total"] = Counter(
            "exporter_cache_watch_errors_total",
            "Total list or watch failures",
            ["error_type"],
            registry=self.registry
        )

        self._metrics["cache_entities"] = Gauge(
            "exporter_cache_entities",
            "Number of services held in the cache",
            registry=self.registry
        )

        self._metrics["cache_synced"] = Gauge(
            "exporter_cache_synced",
            "Whether the initial cache list has completed",
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_cache_event(self, kind: str):
        """Record an applied change event."""
        self._metrics["cache_events_total"].labels(kind=kind).inc()

    def record_relist(self, reason: str, entity_count: int):
        """Record a completed full list."""
        with self._lock:
            self._metrics["cache_relists_total"].labels(reason=reason).inc()
            self._metrics["cache_entities"].set(entity_count)

    def record_watch_error(self, error_type: str):
        """Record a list or watch failure."""
        self._metrics["cache_watch_errors_total"].labels(error_type=error_type).inc()

    def set_cache_size(self, entity_count: int):
        """Set the current cache size."""
        self._metrics["cache_entities"].set(entity_count)

    def set_synced(self, synced: bool):
        """Set the cache sync flag."""
        self._metrics["cache_synced"].set(1 if synced else 0)


def get_exporter_metrics(service_name: str, registry: Optional[CollectorRegistry] = None) -> ExporterMetrics:
    """Get self-monitoring metrics for a service."""
    return ExporterMetrics(service_name, registry)
