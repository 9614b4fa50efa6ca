"""Observability module for logging, tracing and metrics."""

from zen_search.observability.context import get_trace_context, set_trace_context, trace_context, update_trace_context
from zen_search.observability.logging import JsonFormatter, configure_logging
from zen_search.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_DOC_COUNT,
    QUERY_COUNT,
    QUERY_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from zen_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_BUILD_LATENCY",
    "INDEX_DOC_COUNT",
    "QUERY_COUNT",
    "QUERY_LATENCY",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
    "update_trace_context",
]
