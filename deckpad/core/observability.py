from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter, Histogram, start_http_server

from deckpad.core.config import settings

logger = structlog.get_logger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "endpoint", "status_code"]
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
)

DECK_GENERATION_DURATION = Histogram(
    "deck_generation_duration_seconds", "Outline generation duration in seconds"
)

DECK_GENERATION_COUNT = Counter(
    "deck_generation_total", "Total number of outline generations", ["status"]
)

PERSISTENCE_OPERATIONS = Counter(
    "persistence_operations_total",
    "Presentation save/load/delete attempts per transport",
    ["operation", "transport", "status"],
)

DATABASE_OPERATIONS = Counter(
    "database_operations_total",
    "Total database operations",
    ["operation", "table", "status", "exception_type"],
)


def setup_observability() -> None:
    """Setup OpenTelemetry and Prometheus metrics."""

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": settings.version,
            "service.environment": settings.environment,
        }
    )

    trace.set_tracer_provider(TracerProvider(resource=resource))

    if settings.otel_exporter_otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=not settings.is_production(),
        )
        span_processor = BatchSpanProcessor(otlp_exporter)
        trace.get_tracer_provider().add_span_processor(span_processor)

    SQLAlchemyInstrumentor().instrument()

    if settings.prometheus_metrics_enabled and not settings.is_testing():
        try:
            start_http_server(settings.prometheus_metrics_port)
            logger.info(
                "Prometheus metrics server started",
                port=settings.prometheus_metrics_port,
            )
        except OSError as e:
            logger.error("Failed to start Prometheus metrics server", error=str(e))


def get_tracer() -> trace.Tracer:
    """Get OpenTelemetry tracer."""
    return trace.get_tracer(__name__)


@asynccontextmanager
async def trace_async_operation(
    operation_name: str, **attributes: Any
) -> AsyncGenerator[trace.Span, None]:
    """Context manager for tracing async operations."""
    tracer = get_tracer()
    with tracer.start_as_current_span(operation_name) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


class MetricsCollector:
    """Helper class for collecting application metrics."""

    @staticmethod
    def record_http_request(
        method: str, endpoint: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        REQUEST_COUNT.labels(
            method=method, endpoint=endpoint, status_code=status_code
        ).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def record_deck_generation(status: str, duration: float) -> None:
        """Record outline generation metrics."""
        DECK_GENERATION_COUNT.labels(status=status).inc()
        DECK_GENERATION_DURATION.observe(duration)

    @staticmethod
    def record_persistence_operation(
        operation: str, transport: str, status: str
    ) -> None:
        """Record one attempt of a persistence transport."""
        PERSISTENCE_OPERATIONS.labels(
            operation=operation, transport=transport, status=status
        ).inc()

    @staticmethod
    def record_database_operation(
        operation: str, table: str, status: str, exception_type: str | None = None
    ) -> None:
        """Record database operation metrics."""
        DATABASE_OPERATIONS.labels(
            operation=operation,
            table=table,
            status=status,
            exception_type=exception_type or "none",
        ).inc()


# Global metrics collector instance
metrics = MetricsCollector()
