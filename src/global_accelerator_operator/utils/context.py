"""Per-reconcile context carried into structured log records."""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace

# Context variable for storing correlation ID
correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

_bound_fields: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "bound_fields", default=None
)


def set_correlation_id(corr_id: str) -> None:
    """Set the correlation ID in the current context."""
    correlation_id.set(corr_id)


def get_correlation_id() -> str | None:
    """Get the correlation ID from the current context."""
    return correlation_id.get()


@contextmanager
def with_correlation_id(corr_id: str | None = None) -> Iterator[str]:
    """Context manager to set a correlation ID for the duration of a block.

    Args:
        corr_id: Correlation ID to use; a random one is generated if omitted

    Yields:
        The correlation ID
    """
    corr_id = corr_id or uuid.uuid4().hex
    token = correlation_id.set(corr_id)
    try:
        yield corr_id
    finally:
        correlation_id.reset(token)


@contextmanager
def bind_context(**fields: Any) -> Iterator[None]:
    """Attach fields to every structured log record emitted inside the block.

    Nested blocks add to the outer fields; ``None`` values are dropped so a
    not-yet-known accelerator ARN does not show up as ``null``.
    """
    merged = dict(_bound_fields.get() or {})
    merged.update({key: value for key, value in fields.items() if value is not None})
    token = _bound_fields.set(merged)
    try:
        yield
    finally:
        _bound_fields.reset(token)


def current_trace_ids() -> dict[str, str]:
    """Return the ids of the active span, or an empty dict outside a span."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Get a dictionary of context values.

    Args:
        additional: Additional key-value pairs to include

    Returns:
        Dictionary with the correlation id, bound fields and trace ids
    """
    ctx: dict[str, Any] = {}

    corr_id = get_correlation_id()
    if corr_id:
        ctx["correlation_id"] = corr_id

    ctx.update(_bound_fields.get() or {})
    ctx.update(current_trace_ids())

    if additional:
        ctx.update(additional)

    return ctx
