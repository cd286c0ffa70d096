"""
OpenTelemetry setup.

Installs an SDK tracer provider with service resource attributes and
instruments FastAPI. Spans are exported over OTLP/HTTP when an endpoint is
configured.
"""

import structlog
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ..constants import APP_VERSION
from .config import get_settings

logger = structlog.get_logger()


def setup_telemetry(app: FastAPI) -> bool:
    """Configure tracing for the application; returns whether it was enabled."""
    settings = get_settings()
    if not settings.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled")
        return False

    resource = Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": APP_VERSION,
            "deployment.environment": settings.ENVIRONMENT,
        }
    )
    provider = TracerProvider(resource=resource)
    if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT)
            )
        )
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")
    logger.info(
        "OpenTelemetry initialized",
        service_name=settings.OTEL_SERVICE_NAME,
        exporter_endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
    )
    return True


def shutdown_telemetry() -> None:
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.shutdown()
