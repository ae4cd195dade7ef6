"""OpenTelemetry tracing support for the Global Accelerator Operator.

Spans wrap each reconcile and each call to the Global Accelerator API, so a
slow deployment wait shows up as a long ``create`` or ``update`` span.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Span, Tracer

from . import __version__

logger = logging.getLogger(__name__)

_tracer: Tracer | None = None
_provider: TracerProvider | None = None


def _sample_ratio() -> float:
    raw = os.getenv("OTEL_TRACES_SAMPLER_ARG", "1.0")
    try:
        ratio = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid OTEL_TRACES_SAMPLER_ARG {raw!r}")
        return 1.0
    return min(max(ratio, 0.0), 1.0)


def initialize_tracing(service_name: str = "global-accelerator-operator") -> None:
    """Initialize OpenTelemetry tracing.

    Environment Variables:
        OTEL_TRACES_ENABLED: Enable/disable tracing (default: true)
        OTEL_SERVICE_NAME: Service name (default: global-accelerator-operator)
        OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint URL (default: http://localhost:4317)
        OTEL_TRACES_SAMPLER_ARG: Fraction of root spans to sample (default: 1.0)
    """
    global _tracer, _provider

    if os.getenv("OTEL_TRACES_ENABLED", "true").lower() == "false":
        return

    service_name = os.getenv("OTEL_SERVICE_NAME", service_name)
    try:
        _provider = TracerProvider(
            resource=Resource.create({"service.name": service_name, "service.version": __version__}),
            sampler=ParentBased(TraceIdRatioBased(_sample_ratio())),
        )
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
        _provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        trace.set_tracer_provider(_provider)
        _tracer = trace.get_tracer(service_name)
    except Exception as e:
        # Tracing initialization failures should not break the operator
        logger.warning(f"Failed to initialize tracing: {e}")


def shutdown_tracing() -> None:
    """Flush pending spans and stop the exporter."""
    global _tracer, _provider

    if _provider is not None:
        _provider.shutdown()
    _tracer = None
    _provider = None


def get_tracer() -> Tracer | None:
    """Return the operator tracer, or ``None`` when tracing is off."""
    return _tracer


@contextmanager
def trace_span(
    name: str,
    kind: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span | None]:
    """Context manager for creating a trace span.

    Args:
        name: Name of the span
        kind: Resource kind (e.g., "Provider", "Accelerator")
        attributes: Additional span attributes; ``None`` values are skipped

    Yields:
        Span object or None if tracing is not initialized
    """
    tracer = get_tracer()
    if tracer is None:
        yield None
        return

    attrs = {key: value for key, value in (attributes or {}).items() if value is not None}
    if kind:
        attrs["resource.kind"] = kind

    with tracer.start_as_current_span(
        name,
        attributes=attrs,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            if span.is_recording():
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


def add_span_attribute(key: str, value: Any) -> None:
    """Add an attribute to the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)
