"""Prometheus metrics for the indexing pipeline, mirrored to OpenTelemetry.

Every metric is declared once through :func:`counter` or :func:`histogram`,
which registers the Prometheus collector and returns a :class:`MetricBridge`.
The matching OpenTelemetry instrument is created on first use from the meter
installed by :func:`init_metrics`.
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import contextmanager
from dataclasses import dataclass
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


_COMMIT_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

_state: dict[str, Any] = {"provider": None, "meter": None}


def init_metrics(
    service_name: str = "keyword-index",
    resource_attributes: dict[str, str] | None = None,
    metric_readers: list[MetricReader] | None = None,
) -> MeterProvider:
    """Install the OpenTelemetry meter provider once and return it."""
    if isinstance(_state["provider"], MeterProvider):
        return _state["provider"]

    resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
    provider = MeterProvider(resource=resource, metric_readers=metric_readers or [])
    otel_metrics.set_meter_provider(provider)
    _state.update(provider=provider, meter=provider.get_meter(__name__))
    return provider


def _meter():
    if _state["meter"] is None:
        init_metrics()
    return _state["meter"]


_INSTRUMENT_FACTORIES = {
    "counter": lambda meter, name, description: meter.create_counter(name, description=description),
    "histogram": lambda meter, name, description: meter.create_histogram(name, description=description),
}


@dataclass(frozen=True)
class BoundMetric:
    """A bridge with its label values fixed."""

    bridge: MetricBridge
    labels: dict[str, str]

    def inc(self, amount: float = 1.0) -> None:
        self.bridge.record(self.labels, amount)

    def observe(self, value: float) -> None:
        self.bridge.record(self.labels, value)


class MetricBridge:
    """Record a value in a Prometheus collector and its OpenTelemetry twin."""

    def __init__(self, prom_metric: Counter | Histogram, *, name: str, description: str, kind: str) -> None:
        self._prom_metric = prom_metric
        self.name = name
        self.description = description
        self.kind = kind
        self._instrument = None

    @property
    def prometheus_metric(self) -> Counter | Histogram:
        return self._prom_metric

    def labels(self, **labels: str) -> BoundMetric:
        return BoundMetric(self, labels)

    def _otel_instrument(self):
        if self._instrument is None:
            factory = _INSTRUMENT_FACTORIES.get(self.kind)
            if factory is None:
                raise ValueError(f"Unknown metric kind: {self.kind}")
            self._instrument = factory(_meter(), self.name, self.description)
        return self._instrument

    def record(self, labels: dict[str, str], value: float) -> None:
        child = self._prom_metric.labels(**labels)
        instrument = self._otel_instrument()
        if self.kind == "histogram":
            child.observe(value)
            instrument.record(value, labels)
        else:
            child.inc(value)
            instrument.add(value, labels)


def counter(name: str, description: str, labels: Sequence[str]) -> MetricBridge:
    return MetricBridge(Counter(name, description, list(labels)), name=name, description=description, kind="counter")


def histogram(
    name: str,
    description: str,
    labels: Sequence[str],
    buckets: Sequence[float] = Histogram.DEFAULT_BUCKETS,
) -> MetricBridge:
    prom_metric = Histogram(name, description, list(labels), buckets=tuple(buckets))
    return MetricBridge(prom_metric, name=name, description=description, kind="histogram")


DOCUMENTS_INDEXED = counter(
    "keyword_index_documents_indexed_total", "Documents processed by index()", ["document_type"]
)
KEYWORDS_BUFFERED = counter(
    "keyword_index_keywords_buffered_total", "Keywords appended to the pending buffer", ["document_type"]
)
KEYWORDS_COMMITTED = counter(
    "keyword_index_keywords_committed_total", "Keywords written to the index store", ["document_type"]
)
COMMIT_COUNT = counter("keyword_index_commits_total", "Index commits by outcome", ["document_type", "outcome"])
COMMIT_LATENCY = histogram(
    "keyword_index_commit_latency_seconds",
    "Index commit latency in seconds",
    ["document_type"],
    buckets=_COMMIT_LATENCY_BUCKETS,
)
SPELL_CHECK_FAILURES = counter(
    "keyword_index_spell_check_failures_total", "Spell checker errors tolerated while indexing", ["error_type"]
)


@contextmanager
def track_latency(metric: MetricBridge, **labels: str) -> Generator[None, None, None]:
    """Observe the wall time of the block in ``metric``, even when it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        metric.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Prometheus exposition of the default registry."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
