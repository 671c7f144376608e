"""OpenTelemetry tracing setup.

Tracing is off by default. When enabled, spans are exported over OTLP
and/or to the console, and FastAPI is instrumented by the app factory.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Span, SpanKind, Tracer

_tracer: Tracer | None = None


def setup_tracing(
    service_name: str = "memlane",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> Tracer:
    """Initialize OpenTelemetry tracing.

    Args:
        service_name: Name to identify this service in traces
        otlp_endpoint: OTLP gRPC endpoint (e.g., "localhost:4317").
            Falls back to OTEL_EXPORTER_OTLP_ENDPOINT env var
        console_export: Also export spans to console

    Returns:
        Configured Tracer instance
    """
    global _tracer

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))

    endpoint = otlp_endpoint or os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )
    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(service_name)
    return _tracer


def get_tracer() -> Tracer:
    """Get the configured tracer, or a no-op tracer if not initialized."""
    if _tracer is None:
        return trace.get_tracer("memlane")
    return _tracer


def get_current_trace_id() -> str | None:
    """Get the current trace ID as a hex string, or None outside a trace."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.trace_id, "032x")
    return None


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Create a new span as a context manager.

    Exceptions escaping the block are recorded on the span.
    """
    with get_tracer().start_as_current_span(
        name,
        kind=kind,
        attributes=attributes or {},
    ) as span:
        yield span
