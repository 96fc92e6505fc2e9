"""OpenTelemetry tracing configuration for Erasure Store."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace

from erasure_store.infrastructure.config import get_config


def setup_tracing() -> trace.Tracer:
    """Configure OpenTelemetry tracing for erasure store.

    Spans go to the OTLP endpoint when one is configured and to the console
    otherwise.
    """
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

    config = get_config()

    resource = Resource.create(
        {
            "service.name": "erasure_store",
            "service.version": "0.1.0",
            "deployment.environment": config.observability.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    if config.observability.otlp_endpoint:
        exporter = OTLPSpanExporter(
            endpoint=config.observability.otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
    else:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    return trace.get_tracer("erasure_store")


def get_tracer(name: str = "erasure_store") -> trace.Tracer:
    """Get a tracer instance."""
    return trace.get_tracer(name)


@contextmanager
def shard_span(operation: str, **attributes: Any) -> Iterator[trace.Span]:
    """Wrap a shard operation in a span named ``erasure_store.<operation>``.

    Exceptions are recorded on the span and re-raised.
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(f"erasure_store.{operation}") as span:
        for key, value in attributes.items():
            span.set_attribute(f"shard.{key}", value)
        yield span
