"""OpenTelemetry tracing for the invoker, exported to Zipkin."""

import logging
from typing import Callable

from opentelemetry import trace
from opentelemetry.exporter.zipkin.json import ZipkinExporter
from opentelemetry.instrumentation.grpc import aio_client_interceptors
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

DEFAULT_ZIPKIN_URL = "http://localhost:9411/api/v2/spans"


def init_tracer(
    zipkin_url: str = DEFAULT_ZIPKIN_URL,
    service_name: str = "invoker",
) -> Callable[[], None]:
    """Install a global tracer provider that batches spans to Zipkin.

    Args:
        zipkin_url: Zipkin v2 spans endpoint
        service_name: Reported service name

    Returns:
        Shutdown callable that flushes pending spans
    """
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    provider.add_span_processor(BatchSpanProcessor(ZipkinExporter(endpoint=zipkin_url)))
    trace.set_tracer_provider(provider)
    logger.info("Tracing enabled, exporting spans to %s", zipkin_url)
    return provider.shutdown


def get_tracer() -> trace.Tracer:
    return trace.get_tracer("invoker")


def grpc_client_interceptors() -> list:
    """Client interceptors that propagate trace context over gRPC."""
    return list(aio_client_interceptors())
