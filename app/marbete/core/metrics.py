from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.marbete.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = settings.METRICS_ENABLED
        self._registry = None
        self._http_requests_total = None
        self._http_request_duration_ms = None
        self._lock_wait_timeout_total = None
        self._scans_ingested_total = None
        self._marbetes_closed_total = None
        self._closed_batch_conflict_total = None
        self._stats_recompute_failures_total = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
            registry=self._registry,
        )
        self._lock_wait_timeout_total = Counter(
            "lock_wait_timeout_total",
            "Lock wait timeout occurrences.",
            registry=self._registry,
        )
        self._scans_ingested_total = Counter(
            "scans_ingested_total",
            "Scan rows appended by bulk ingestion.",
            registry=self._registry,
        )
        self._marbetes_closed_total = Counter(
            "marbetes_closed_total",
            "Control batches closed by a verification commit.",
            registry=self._registry,
        )
        self._closed_batch_conflict_total = Counter(
            "closed_batch_conflict_total",
            "Requests rejected because the control batch was already verified.",
            registry=self._registry,
        )
        self._stats_recompute_failures_total = Counter(
            "stats_recompute_failures_total",
            "Productivity stats recomputations that failed.",
            ["role"],
            registry=self._registry,
        )

    def reset(self) -> None:
        if not self.enabled:
            return
        self._initialize_registry()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests_total.labels(**labels).inc()
        self._http_request_duration_ms.labels(**labels).observe(latency_ms)

    def increment_lock_wait_timeout(self) -> None:
        if not self.enabled:
            return
        self._lock_wait_timeout_total.inc()

    def increment_scans_ingested(self, count: int) -> None:
        if not self.enabled:
            return
        self._scans_ingested_total.inc(count)

    def increment_marbete_closed(self) -> None:
        if not self.enabled:
            return
        self._marbetes_closed_total.inc()

    def increment_closed_batch_conflict(self) -> None:
        if not self.enabled:
            return
        self._closed_batch_conflict_total.inc()

    def increment_stats_recompute_failure(self, role: str) -> None:
        if not self.enabled:
            return
        self._stats_recompute_failures_total.labels(role=role).inc()

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
