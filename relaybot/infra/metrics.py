# relaybot/infra/metrics.py
"""
In-process metrics for the dispatch pipeline.

Counters and latency windows live in one process-wide ``MetricsCollector``
and are served as JSON by the transport's ``/metrics`` route. Series are
named Prometheus-style, ``name{label=value,...}``, with labels sorted.

Histograms keep only the most recent observations (a sliding window), so a
long-running webhook server has bounded memory.
"""
from __future__ import annotations

import time
from collections import defaultdict, deque
from contextlib import contextmanager
from threading import Lock
from typing import Iterator

from relaybot.infra.logging_config import get_logger

logger = get_logger(__name__)

HISTOGRAM_WINDOW = 1000

SeriesKey = tuple[str, tuple[tuple[str, str], ...]]


def _series(name: str, labels: dict | None) -> SeriesKey:
    if not labels:
        return name, ()
    return name, tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def format_series(key: SeriesKey) -> str:
    name, labels = key
    if not labels:
        return name
    return name + "{" + ",".join(f"{k}={v}" for k, v in labels) + "}"


def summarize(values: list[float]) -> dict:
    """count/min/max/avg and p50/p95/p99 of a window (zeros when empty)."""
    if not values:
        return {"count": 0, "min": 0, "max": 0, "avg": 0, "p50": 0, "p95": 0, "p99": 0}

    ordered = sorted(values)
    count = len(ordered)

    def pct(p: float) -> float:
        return ordered[min(int(count * p), count - 1)]

    return {
        "count": count,
        "min": ordered[0],
        "max": ordered[-1],
        "avg": sum(ordered) / count,
        "p50": pct(0.50),
        "p95": pct(0.95),
        "p99": pct(0.99),
    }


class MetricsCollector:
    def __init__(self, window: int = HISTOGRAM_WINDOW):
        self._window = window
        self._counters: dict[SeriesKey, int] = defaultdict(int)
        self._windows: dict[SeriesKey, deque] = {}
        self._lock = Lock()
        self._started = time.monotonic()

    def inc_counter(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        key = _series(name, labels)
        with self._lock:
            self._counters[key] += amount

    def observe_histogram(self, name: str, value: float, labels: dict | None = None) -> None:
        key = _series(name, labels)
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = deque(maxlen=self._window)
            window.append(value)

    def get_metrics(self) -> dict:
        """Snapshot of every series, keyed by its formatted name."""
        with self._lock:
            counters = {format_series(k): v for k, v in self._counters.items()}
            windows = {format_series(k): list(v) for k, v in self._windows.items()}

        return {
            "uptime_seconds": round(time.monotonic() - self._started, 3),
            "counters": counters,
            "histograms": {name: summarize(values) for name, values in windows.items()},
        }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._windows.clear()
        logger.debug("Metrics reset")


_metrics = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics


def inc_counter(name: str, amount: int = 1, **labels) -> None:
    _metrics.inc_counter(name, amount, labels or None)


def observe_histogram(name: str, value: float, **labels) -> None:
    _metrics.observe_histogram(name, value, labels or None)


@contextmanager
def timed(metric_name: str, **labels) -> Iterator[None]:
    """Observe the wall time of the block in seconds, also when it raises."""
    started = time.perf_counter()
    try:
        yield
    finally:
        observe_histogram(metric_name, time.perf_counter() - started, **labels)


class AppMetrics:
    """Named series emitted by the bot pipeline, stores, clients and transport."""

    @staticmethod
    def event_received(platform: str) -> None:
        inc_counter("events_received_total", platform=platform)

    @staticmethod
    def session_created(platform: str) -> None:
        inc_counter("sessions_created_total", platform=platform)

    @staticmethod
    def store_error(operation: str) -> None:
        inc_counter("session_store_errors_total", operation=operation)

    @staticmethod
    def verification_failed(platform: str) -> None:
        inc_counter("webhook_verification_failures_total", platform=platform)

    @staticmethod
    def duplicate_delivery(platform: str) -> None:
        inc_counter("duplicate_deliveries_total", platform=platform)

    @staticmethod
    def handler_error(platform: str) -> None:
        inc_counter("handler_errors_total", platform=platform)

    @staticmethod
    def outbound_request(platform: str, outcome: str) -> None:
        inc_counter("outbound_requests_total", platform=platform, outcome=outcome)

    @staticmethod
    def webhook_request(route: str, status: int) -> None:
        inc_counter("webhook_requests_total", route=route, status=status)

    @staticmethod
    def track_processing_time(platform: str):
        return timed("event_processing_seconds", platform=platform)
