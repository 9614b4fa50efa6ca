"""Prometheus metrics for index builds and queries."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


QUERY_COUNT = Counter(
    "zen_search_queries_total",
    "Total search queries",
    ["entity_type", "status"],
)

QUERY_LATENCY = Histogram(
    "zen_search_query_latency_seconds",
    "Search query latency in seconds",
    ["entity_type"],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)

INDEX_BUILD_LATENCY = Histogram(
    "zen_search_index_build_seconds",
    "Index build duration in seconds",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

INDEX_DOC_COUNT = Gauge(
    "zen_search_index_documents",
    "Documents in the most recently built index",
    ["doc_type"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        target = histogram.labels(**labels) if labels else histogram
        target.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
