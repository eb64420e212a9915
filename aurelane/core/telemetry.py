"""
Optional OpenTelemetry tracing for outbound Aurelane API calls.

Tracing stays off unless ``OTEL_ENABLED`` is set. When on, spans are
exported over OTLP and propagated with B3 headers, and every request the
transport issues runs inside an ``aurelane`` client span.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.b3 import B3MultiFormat
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind

from aurelane.core.config import Settings

logger = logging.getLogger(__name__)

TRACER_NAME = "aurelane.client"


def build_resource(settings: Settings) -> Resource:
    return Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": settings.otel_service_version,
            "service.namespace": "aurelane",
            "deployment.environment": settings.environment,
        }
    )


def configure_tracing(settings: Settings) -> bool:
    """Install the OTLP exporter and httpx instrumentation.

    Returns True when tracing is active. Setup failures are logged and leave
    the client untraced rather than unusable.
    """
    if not settings.otel_enabled:
        logger.debug("Tracing disabled for %s", settings.otel_service_name)
        return False

    try:
        set_global_textmap(B3MultiFormat())

        provider = TracerProvider(resource=build_resource(settings))
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(
                    endpoint=settings.otel_exporter_otlp_endpoint,
                    headers=settings.otel_exporter_otlp_headers,
                )
            )
        )
        trace.set_tracer_provider(provider)

        HTTPXClientInstrumentor().instrument()
    except Exception as exc:
        logger.warning("Tracing setup failed, continuing untraced: %s", exc)
        return False

    logger.info(
        "Tracing %s to %s",
        settings.otel_service_name,
        settings.otel_exporter_otlp_endpoint,
    )
    return True


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def api_span(method: str, endpoint: str, path: str) -> Iterator[trace.Span]:
    """Client span around one backend call; a no-op span when tracing is off."""
    with get_tracer().start_as_current_span(
        f"aurelane {endpoint}",
        kind=SpanKind.CLIENT,
        attributes={
            "http.request.method": method,
            "aurelane.endpoint": endpoint,
            "url.path": path,
        },
    ) as span:
        yield span


__all__ = ["api_span", "build_resource", "configure_tracing", "get_tracer"]
