from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.rfidpos.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self, enabled: bool | None = None) -> None:
        self.enabled = settings.METRICS_ENABLED if enabled is None else enabled
        self._registry = None
        self._http_requests_total = None
        self._http_request_duration_ms = None
        self._scan_outcomes_total = None
        self._sales_completed_total = None
        self._kill_requests_total = None
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
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000),
            registry=self._registry,
        )
        self._scan_outcomes_total = Counter(
            "scan_outcomes_total",
            "Scan dispatch outcomes by source.",
            ["outcome", "source"],
            registry=self._registry,
        )
        self._sales_completed_total = Counter(
            "sales_completed_total",
            "Committed sales.",
            registry=self._registry,
        )
        self._kill_requests_total = Counter(
            "kill_requests_total",
            "Kill requests issued after sale, by mode.",
            ["mode"],
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

    def record_scan(self, *, outcome: str, source: str) -> None:
        if not self.enabled:
            return
        self._scan_outcomes_total.labels(outcome=outcome, source=source).inc()

    def increment_sales_completed(self) -> None:
        if not self.enabled:
            return
        self._sales_completed_total.inc()

    def record_kill_request(self, mode: str) -> None:
        if not self.enabled:
            return
        self._kill_requests_total.labels(mode=mode).inc()

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
