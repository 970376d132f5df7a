"""Tracing, Prometheus metrics and structlog configuration for the co-driving API."""

import logging

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from .config import settings

SERVICE_NAME = "codriving-booking-api"
SERVICE_VERSION = "1.0.0"

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Business metrics
BOOKINGS_CREATED = Counter(
    'bookings_created_total',
    'Total bookings created',
    registry=REGISTRY
)

BOOKINGS_TRANSITIONED = Counter(
    'bookings_transitions_total',
    'Booking status transitions by target status',
    ['status'],
    registry=REGISTRY
)

BOOKINGS_DELETED = Counter(
    'bookings_deleted_total',
    'Total bookings removed administratively',
    registry=REGISTRY
)

BOOKINGS_REJECTED = Counter(
    'bookings_rejected_total',
    'Booking operations rejected by a business rule',
    ['code'],
    registry=REGISTRY
)

CREDITS_MOVED = Counter(
    'booking_credits_moved_total',
    'Credits debited or refunded by booking operations',
    ['direction'],
    registry=REGISTRY
)

TRIP_SEARCHES = Counter(
    'trip_searches_total',
    'Trip searches by kind and whether they matched anything',
    ['kind', 'matched'],
    registry=REGISTRY
)


def setup_structured_logging():
    """Console logs in development, JSON lines elsewhere, with request and trace ids bound."""

    def add_trace_context(logger, method_name, event_dict):
        """Copy the active span ids into the event."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })


def setup_tracing():
    """Install the tracer provider, exporting spans over OTLP when an endpoint is configured."""
    provider = TracerProvider(resource=_resource())
    trace.set_tracer_provider(provider)

    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))

    return trace.get_tracer(__name__)


def setup_metrics():
    """Install the meter provider, exporting over OTLP when an endpoint is configured."""
    if settings.otlp_endpoint:
        exporter = OTLPMetricExporter(endpoint=settings.otlp_endpoint)
        reader = PeriodicExportingMetricReader(exporter=exporter, export_interval_millis=60000)
        metrics.set_meter_provider(MeterProvider(resource=_resource(), metric_readers=[reader]))

    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Trace every route of ``app``; probes and /metrics are excluded."""
    FastAPIInstrumentor.instrument_app(app, excluded_urls="/health,/ready,/metrics")


def instrument_sqlalchemy(engine):
    """Instrument the async engine's sync core with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for booking and search metrics."""

    @staticmethod
    def record_booking_created(credits_used: int):
        """Record a booking creation and the credits it debited."""
        BOOKINGS_CREATED.inc()
        CREDITS_MOVED.labels(direction="debit").inc(credits_used)

    @staticmethod
    def record_booking_transition(status: str):
        """Record a booking reaching a new status."""
        BOOKINGS_TRANSITIONED.labels(status=status).inc()

    @staticmethod
    def record_refund(credits: int):
        """Record credits returned to a passenger."""
        CREDITS_MOVED.labels(direction="refund").inc(credits)

    @staticmethod
    def record_booking_deleted():
        BOOKINGS_DELETED.inc()

    @staticmethod
    def record_booking_rejected(code: str):
        """Record a booking operation rejected by a business rule."""
        BOOKINGS_REJECTED.labels(code=code).inc()

    @staticmethod
    def record_trip_search(kind: str, result_count: int):
        TRIP_SEARCHES.labels(kind=kind, matched=str(result_count > 0).lower()).inc()


def get_prometheus_metrics():
    """Render the booking and HTTP registry in Prometheus text format."""
    return generate_latest(REGISTRY)


# Shared by the services
metrics_collector = MetricsCollector()
