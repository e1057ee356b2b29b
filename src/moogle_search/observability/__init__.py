"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from moogle_search.observability.context import bind_query, get_trace_context, set_trace_context, trace_context
from moogle_search.observability.logging import JsonFormatter, configure_logging
from moogle_search.observability.metrics import (
    FUZZY_FALLBACKS,
    INDEX_BUILD_LATENCY,
    INDEX_DOCUMENT_COUNT,
    INDEX_VOCABULARY_SIZE,
    SEARCH_LATENCY,
    SEARCH_RESULTS,
    get_metrics,
    init_metrics,
    track_latency,
)
from moogle_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "FUZZY_FALLBACKS",
    "INDEX_BUILD_LATENCY",
    "INDEX_DOCUMENT_COUNT",
    "INDEX_VOCABULARY_SIZE",
    "SEARCH_LATENCY",
    "SEARCH_RESULTS",
    "JsonFormatter",
    "bind_query",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
