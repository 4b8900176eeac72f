"""Logging, metrics and tracing for the search engine."""

from docsite_search.observability.context import (
    bind_version,
    generate_span_id,
    generate_trace_id,
    get_trace_context,
    set_trace_context,
    update_span_id,
)
from docsite_search.observability.logging import JsonFormatter, configure_logging, configure_logging_from_settings
from docsite_search.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_CHUNK_COUNT,
    INGESTION_ERRORS,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from docsite_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_BUILD_LATENCY",
    "INDEX_CHUNK_COUNT",
    "INGESTION_ERRORS",
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "JsonFormatter",
    "bind_version",
    "configure_logging",
    "configure_logging_from_settings",
    "create_span",
    "generate_span_id",
    "generate_trace_id",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "track_latency",
    "update_span_id",
]
