"""Observability module: structured logging, OpenTelemetry tracing and metrics."""

from keyword_index.observability.context import (
    get_trace_context,
    indexing_context,
    set_trace_context,
)
from keyword_index.observability.logging import JsonFormatter, configure_logging
from keyword_index.observability.metrics import (
    COMMIT_COUNT,
    COMMIT_LATENCY,
    DOCUMENTS_INDEXED,
    KEYWORDS_BUFFERED,
    KEYWORDS_COMMITTED,
    SPELL_CHECK_FAILURES,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from keyword_index.observability.tracing import create_span, get_tracer, init_tracing, reset_tracing


__all__ = [
    "COMMIT_COUNT",
    "COMMIT_LATENCY",
    "DOCUMENTS_INDEXED",
    "KEYWORDS_BUFFERED",
    "KEYWORDS_COMMITTED",
    "SPELL_CHECK_FAILURES",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "indexing_context",
    "init_metrics",
    "init_tracing",
    "reset_tracing",
    "set_trace_context",
    "track_latency",
]
