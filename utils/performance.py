"""Performance and delivery metrics using Prometheus."""

from __future__ import annotations

import time
from contextlib import contextmanager

import psutil
from prometheus_client import Counter, Histogram


submissions_total = Counter(
    "submissions_total", "Accepted submissions", labelnames=("kind",)
)
notifications_sent = Counter(
    "notifications_sent_total", "Notifications delivered", labelnames=("channel", "event")
)
notifications_failed = Counter(
    "notifications_failed_total", "Notifications that failed", labelnames=("channel", "event")
)
service_duration = Histogram(
    "service_operation_duration_seconds", "Service operation duration", labelnames=("operation",)
)


class PerformanceMonitor:
    @contextmanager
    def track(self, operation: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            service_duration.labels(operation=operation).observe(time.perf_counter() - start)

    def record_submission(self, kind: str) -> None:
        submissions_total.labels(kind=kind).inc()

    def record_notification(self, channel: str, event: str, delivered: bool) -> None:
        counter = notifications_sent if delivered else notifications_failed
        counter.labels(channel=channel, event=event).inc()

    def gather_host_metrics(self) -> dict:
        process = psutil.Process()
        memory_info = process.memory_info()
        return {
            "memory_rss": memory_info.rss,
            "cpu_percent": process.cpu_percent(interval=None),
        }


monitor = PerformanceMonitor()
