"""OpenTelemetry spans around index builds and queries.

Spans are recorded by an SDK tracer provider with no exporter attached;
embedders (and tests) add span processors to the provider returned by
``init_tracing``.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import SpanKind, Status, StatusCode

from zen_search.observability.context import get_trace_context, span_ids, trace_context


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

_tracer_holder: dict[str, Any] = {"tracer": None, "provider": None}


def init_tracing(service_name: str = "zen-search", resource_attributes: dict[str, str] | None = None) -> TracerProvider:
    """Install the process-wide tracer provider once and return it.

    Later calls return the first provider; the global provider cannot be
    replaced.
    """
    provider = _tracer_holder["provider"]
    if provider is None:
        resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
        provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(provider)
        _tracer_holder.update(provider=provider, tracer=provider.get_tracer("zen_search"))
        logger.debug("Tracing initialized for service: %s", service_name)
    return provider


def get_tracer() -> Tracer:
    if _tracer_holder["tracer"] is None:
        init_tracing()
    return _tracer_holder["tracer"]


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Run the block inside a span whose ids are visible to log records.

    An escaping exception marks the span as failed and is re-raised.
    """
    with get_tracer().start_as_current_span(
        name,
        kind=kind,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        token = trace_context.set({**get_trace_context(), **span_ids(span)})
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
        finally:
            trace_context.reset(token)
