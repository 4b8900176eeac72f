"""Search and indexing metrics.

Each metric is declared once as a ``MetricBridge``: the Prometheus collector is
registered immediately, the matching OpenTelemetry instrument is created on
first use so importing this module never configures a meter provider.

    SEARCH_REQUESTS.labels(engine="docs", status="ok").inc()
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


_meter_holder: dict[str, Any] = {"meter": None, "provider": None}

# kind -> (prometheus collector, MeterProvider factory method)
_KINDS: dict[str, tuple[type, str]] = {
    "counter": (Counter, "create_counter"),
    "histogram": (Histogram, "create_histogram"),
    "gauge": (Gauge, "create_up_down_counter"),
}


def init_metrics(
    service_name: str = "docsite-search",
    resource_attributes: dict[str, str] | None = None,
    metric_readers: list[MetricReader] | None = None,
) -> MeterProvider:
    """Install the process-wide meter provider once and return it."""
    existing = _meter_holder["provider"]
    if isinstance(existing, MeterProvider):
        return existing

    provider = MeterProvider(
        resource=Resource.create({"service.name": service_name, **(resource_attributes or {})}),
        metric_readers=metric_readers or [],
    )
    otel_metrics.set_meter_provider(provider)
    _meter_holder.update(provider=provider, meter=otel_metrics.get_meter(__name__))
    return provider


def _meter():
    if _meter_holder["meter"] is None:
        init_metrics()
    return _meter_holder["meter"]


class MetricBridge:
    """A Prometheus collector paired with a lazily created OTel instrument.

    Gauges are exported to OTel as up/down counters, so ``set`` forwards the
    difference from the last value seen for the same label set.
    """

    def __init__(
        self,
        kind: str,
        name: str,
        description: str,
        labelnames: Sequence[str],
        *,
        buckets: Sequence[float] | None = None,
    ) -> None:
        if kind not in _KINDS:
            raise ValueError(f"Unknown metric kind: {kind}")
        collector_type, self._factory = _KINDS[kind]
        extra = {"buckets": tuple(buckets)} if buckets is not None else {}
        self.kind = kind
        self.name = name
        self.description = description
        self.prom = collector_type(name, description, list(labelnames), **extra)
        self._instrument = None
        self._gauge_values: dict[tuple[tuple[str, str], ...], float] = {}

    def labels(self, **labels: str) -> BoundMetric:
        return BoundMetric(self, labels)

    def _otel(self):
        if self._instrument is None:
            self._instrument = getattr(_meter(), self._factory)(self.name, description=self.description)
        return self._instrument

    def inc(self, labels: dict[str, str], amount: float = 1.0) -> None:
        self.prom.labels(**labels).inc(amount)
        self._otel().add(amount, labels)

    def observe(self, labels: dict[str, str], value: float) -> None:
        self.prom.labels(**labels).observe(value)
        self._otel().record(value, labels)

    def set(self, labels: dict[str, str], value: float) -> None:
        self.prom.labels(**labels).set(value)
        key = tuple(sorted(labels.items()))
        delta = value - self._gauge_values.get(key, 0.0)
        if delta:
            self._otel().add(delta, labels)
        self._gauge_values[key] = value


class BoundMetric:
    """``MetricBridge`` with its label values fixed."""

    def __init__(self, bridge: MetricBridge, labels: dict[str, str]) -> None:
        self.bridge = bridge
        self.label_values = labels

    def inc(self, amount: float = 1.0) -> None:
        self.bridge.inc(self.label_values, amount)

    def observe(self, value: float) -> None:
        self.bridge.observe(self.label_values, value)

    def set(self, value: float) -> None:
        self.bridge.set(self.label_values, value)


SEARCH_LATENCY = MetricBridge(
    "histogram",
    "docsite_search_latency_seconds",
    "Search query latency",
    ["engine", "scope"],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)
SEARCH_REQUESTS = MetricBridge(
    "counter",
    "docsite_search_requests_total",
    "Search calls by outcome",
    ["engine", "status"],
)
INDEX_BUILD_LATENCY = MetricBridge(
    "histogram",
    "docsite_index_build_seconds",
    "Time spent building the inverted index",
    ["engine"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)
INDEX_CHUNK_COUNT = MetricBridge(
    "gauge",
    "docsite_index_chunk_count",
    "Chunks in the active index generation",
    ["engine"],
)
INGESTION_ERRORS = MetricBridge(
    "counter",
    "docsite_ingestion_errors_total",
    "Documents skipped during indexing",
    ["reason"],
)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Generator[None, None, None]:
    """Observe the wall time of the ``with`` block, even when it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Prometheus exposition text for the default registry."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
