"""
Metrics collection for the complaint audit layer.

Provides a simple, thread-safe metrics collection system that tracks:
- Counters: Monotonically increasing values (operations, rejections)
- Gauges: Point-in-time values (registered complaints, active requests)
- Histograms: Distribution of values (request latency)

Metrics are exposed in a format compatible with Prometheus scraping.
"""

import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

METRIC_PREFIX = "audit_layer_"


@dataclass
class HistogramBucket:
    """A histogram bucket for tracking value distributions."""

    le: float  # Less than or equal to
    count: int = 0


@dataclass
class Histogram:
    """A histogram with latency buckets in milliseconds."""

    name: str
    buckets: list[HistogramBucket] = field(default_factory=list)
    sum: float = 0.0
    count: int = 0

    def __post_init__(self):
        if not self.buckets:
            default_bounds = [1, 5, 10, 25, 50, 100, 250, 500, 1000]
            self.buckets = [HistogramBucket(le=b) for b in default_bounds]
            self.buckets.append(HistogramBucket(le=float("inf")))

    def observe(self, value: float) -> None:
        """Record an observation."""
        self.sum += value
        self.count += 1
        for bucket in self.buckets:
            if value <= bucket.le:
                bucket.count += 1


class MetricsCollector:
    """
    Thread-safe metrics collector.

    Collects counters, gauges, and histograms with optional labels.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._counters: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._gauges: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        self._histograms: dict[str, dict[str, Histogram]] = defaultdict(dict)
        self._start_time = time.time()

    def _labels_key(self, labels: dict[str, str] | None) -> str:
        """Convert labels dict to a hashable key."""
        if not labels:
            return ""
        return ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))

    # Counter operations

    def increment(self, name: str, value: int = 1, labels: dict[str, str] | None = None) -> None:
        with self._lock:
            self._counters[name][self._labels_key(labels)] += value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        with self._lock:
            return self._counters[name].get(self._labels_key(labels), 0)

    # Gauge operations

    def set_gauge(self, name: str, value: float, labels: dict[str, str] | None = None) -> None:
        with self._lock:
            self._gauges[name][self._labels_key(labels)] = value

    def increment_gauge(
        self, name: str, value: float = 1.0, labels: dict[str, str] | None = None
    ) -> None:
        with self._lock:
            self._gauges[name][self._labels_key(labels)] += value

    def decrement_gauge(
        self, name: str, value: float = 1.0, labels: dict[str, str] | None = None
    ) -> None:
        with self._lock:
            self._gauges[name][self._labels_key(labels)] -= value

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            return self._gauges[name].get(self._labels_key(labels), 0.0)

    # Histogram operations

    def timing(self, name: str, value_ms: float, labels: dict[str, str] | None = None) -> None:
        """Record a timing observation in milliseconds."""
        with self._lock:
            key = self._labels_key(labels)
            if key not in self._histograms[name]:
                self._histograms[name][key] = Histogram(name=name)
            self._histograms[name][key].observe(value_ms)

    @contextmanager
    def timer(self, name: str, labels: dict[str, str] | None = None):
        """Context manager for timing code blocks."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.timing(name, (time.perf_counter() - start) * 1000, labels)

    # Export methods

    @staticmethod
    def _flatten(values: dict[str, Any]) -> Any:
        if len(values) == 1 and "" in values:
            return values[""]
        return dict(values)

    def get_all(self) -> dict[str, Any]:
        """Get all metrics as a dictionary."""
        with self._lock:
            return {
                "uptime_seconds": time.time() - self._start_time,
                "counters": {name: self._flatten(v) for name, v in self._counters.items()},
                "gauges": {name: self._flatten(v) for name, v in self._gauges.items()},
                "histograms": {
                    name: {
                        (key or "_total"): {
                            "count": hist.count,
                            "sum": hist.sum,
                            "avg": hist.sum / hist.count if hist.count > 0 else 0,
                            "buckets": {str(b.le): b.count for b in hist.buckets},
                        }
                        for key, hist in histograms.items()
                    }
                    for name, histograms in self._histograms.items()
                },
            }

    def to_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        lines = []

        with self._lock:
            uptime = time.time() - self._start_time
            lines.append(f"# HELP {METRIC_PREFIX}uptime_seconds Time since application start")
            lines.append(f"# TYPE {METRIC_PREFIX}uptime_seconds gauge")
            lines.append(f"{METRIC_PREFIX}uptime_seconds {uptime:.2f}")
            lines.append("")

            for kind, series in (("counter", self._counters), ("gauge", self._gauges)):
                for name, values in series.items():
                    metric_name = f"{METRIC_PREFIX}{name}"
                    lines.append(f"# TYPE {metric_name} {kind}")
                    for key, value in values.items():
                        labels = f"{{{key}}}" if key else ""
                        lines.append(f"{metric_name}{labels} {value}")
                    lines.append("")

            for name, histograms in self._histograms.items():
                metric_name = f"{METRIC_PREFIX}{name}"
                lines.append(f"# TYPE {metric_name} histogram")
                for key, hist in histograms.items():
                    prefix = f"{key}," if key else ""
                    labels = f"{{{key}}}" if key else ""
                    for bucket in hist.buckets:
                        le_val = "+Inf" if bucket.le == float("inf") else bucket.le
                        lines.append(f'{metric_name}_bucket{{{prefix}le="{le_val}"}} {bucket.count}')
                    lines.append(f"{metric_name}_sum{labels} {hist.sum:.2f}")
                    lines.append(f"{metric_name}_count{labels} {hist.count}")
                lines.append("")

        return "\n".join(lines)

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._start_time = time.time()


# Global metrics instance
metrics = MetricsCollector()
