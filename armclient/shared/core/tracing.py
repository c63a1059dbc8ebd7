from typing import Optional

import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from armclient.shared.core.config import get_settings

logger = structlog.get_logger()


def setup_tracing() -> None:
    """
    Sets up OpenTelemetry tracing for the client process.
    """
    settings = get_settings()
    if settings.TESTING:
        return

    # 1. Define Resource
    resource = Resource(attributes={
        SERVICE_NAME: settings.APP_NAME,
        "env": settings.ENVIRONMENT,
    })

    # 2. Setup Provider
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)

    # 3. Add Exporter (OTLP if endpoint provided, otherwise Console)
    otlp_endpoint = settings.OTEL_EXPORTER_OTLP_ENDPOINT
    if otlp_endpoint:
        logger.info("setup_tracing_otlp", endpoint=otlp_endpoint)
        otlp_exporter = OTLPSpanExporter(
            endpoint=otlp_endpoint, insecure=settings.OTEL_EXPORTER_OTLP_INSECURE
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    else:
        logger.info("setup_tracing_console")
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))


def get_tracer(name: str) -> trace.Tracer:
    """Returns a tracer instance for manual instrumentation."""
    return trace.get_tracer(name)


def get_current_trace_id() -> Optional[str]:
    """Returns the hex trace id of the active span, if any."""
    span = trace.get_current_span()
    context = span.get_span_context()
    if not context.is_valid:
        return None
    return format(context.trace_id, "032x")
