"""Per-context correlation ids (and entity type) attached to every log record."""

from __future__ import annotations

from contextvars import ContextVar, Token
import secrets
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from opentelemetry.trace import Span

trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def _fresh_ids() -> dict:
    return {"trace_id": secrets.token_hex(16), "span_id": secrets.token_hex(8)}


def get_trace_context() -> dict:
    """Return the current context, minting ids on first use."""
    ctx = trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {**(ctx or {}), **_fresh_ids()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_trace_context(**values: object) -> Token:
    """Merge ``values`` into the current context.

    Returns the token that restores the previous context through
    ``trace_context.reset``.
    """
    return trace_context.set({**get_trace_context(), **values})


def span_ids(span: Span) -> dict[str, str]:
    """Hex trace/span ids of an OpenTelemetry span, as they appear in logs."""
    span_ctx = span.get_span_context()
    return {"trace_id": format(span_ctx.trace_id, "032x"), "span_id": format(span_ctx.span_id, "016x")}
