"""
In-process metrics for the Tech Incidents service.

Counts backend relay calls and HTTP requests and records their durations.
Metrics are exposed in Prometheus text format at ``/metrics``.
"""

from typing import Dict, List, Optional
import threading


class MetricsCollector:
    """
    Process-wide metrics collector.

    Counters, gauges and (count/sum) histograms keyed by metric name and a
    sorted label set. Instances created with ``MetricsCollector()`` share
    state; tests call :meth:`reset` between cases.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self._gauges: Dict[str, Dict[str, float]] = {}
        self._counters: Dict[str, Dict[str, int]] = {}
        self._histograms: Dict[str, Dict[str, List[float]]] = {}
        self._write_lock = threading.Lock()

    def reset(self) -> None:
        with self._write_lock:
            self._gauges.clear()
            self._counters.clear()
            self._histograms.clear()

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None):
        label_key = self._make_label_key(labels or {})
        with self._write_lock:
            self._gauges.setdefault(name, {})[label_key] = value

    def increment_counter(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None):
        """
        Increment a counter metric.

        Args:
            name: Metric name
            value: Increment amount (default 1)
            labels: Label dictionary
        """
        label_key = self._make_label_key(labels or {})
        with self._write_lock:
            series = self._counters.setdefault(name, {})
            series[label_key] = series.get(label_key, 0) + value

    def record_histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None):
        label_key = self._make_label_key(labels or {})
        with self._write_lock:
            self._histograms.setdefault(name, {}).setdefault(label_key, []).append(value)

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> int:
        """Current value of one counter series (0 if never incremented)."""
        return self._counters.get(name, {}).get(self._make_label_key(labels or {}), 0)

    def get_metrics(self) -> str:
        """
        Get all metrics in Prometheus text format.

        Returns:
            Prometheus-formatted metrics string
        """
        lines = []

        for name, labels_dict in self._gauges.items():
            lines.append(f"# TYPE {name} gauge")
            for label_key, value in labels_dict.items():
                lines.append(f"{name}{{{label_key}}} {value}")

        for name, labels_dict in self._counters.items():
            lines.append(f"# TYPE {name} counter")
            for label_key, value in labels_dict.items():
                lines.append(f"{name}{{{label_key}}} {value}")

        # Histograms are reported as count and sum only
        for name, labels_dict in self._histograms.items():
            lines.append(f"# TYPE {name} histogram")
            for label_key, values in labels_dict.items():
                lines.append(f"{name}_count{{{label_key}}} {len(values)}")
                lines.append(f"{name}_sum{{{label_key}}} {sum(values)}")

        return "\n".join(lines) + "\n" if lines else ""

    def _make_label_key(self, labels: Dict[str, str]) -> str:
        if not labels:
            return ""
        return ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))


metrics = MetricsCollector()


def track_backend_call(function: str, method: str, outcome: str, duration_seconds: float):
    """
    Record one relay call to a backend function.

    ``outcome`` is ``success`` or the error type tag of the failure.
    """
    labels = {"function": function, "method": method, "outcome": outcome}
    metrics.increment_counter("tech_incidents_backend_calls_total", 1, labels)
    metrics.record_histogram(
        "tech_incidents_backend_call_duration_seconds",
        duration_seconds,
        {"function": function, "method": method},
    )


def track_http_request(endpoint: str, method: str, status: int, duration_seconds: float):
    """Record one request handled by the web service."""
    metrics.increment_counter(
        "tech_incidents_http_requests_total",
        1,
        {"endpoint": endpoint, "method": method, "status": str(status)},
    )
    metrics.record_histogram(
        "tech_incidents_http_request_duration_seconds",
        duration_seconds,
        {"endpoint": endpoint, "method": method},
    )


def track_incidents_loaded(count: int):
    metrics.set_gauge("tech_incidents_catalog_size", count)


def get_metrics_text() -> str:
    """All metrics in Prometheus text format (the ``/metrics`` body)."""
    return metrics.get_metrics()
