"""Monitoring and observability setup.

Instruments are created from the global OpenTelemetry API at import time.
Until ``init_telemetry`` installs real providers they are no-op proxies, so
modules can record metrics unconditionally and tests run without a collector.
"""
import logging
from opentelemetry import trace, metrics
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

from config import OTEL_EXPORTER_OTLP_ENDPOINT, SERVICE_NAME, TELEMETRY_ENABLED

logger = logging.getLogger(__name__)

_telemetry_initialized = False


def init_tracing() -> trace.Tracer:
    """
    Initialize OpenTelemetry tracing.

    Returns:
        Tracer instance
    """
    resource = Resource.create({"service.name": SERVICE_NAME})

    tracer_provider = TracerProvider(resource=resource)
    otlp_span_exporter = OTLPSpanExporter(
        endpoint=OTEL_EXPORTER_OTLP_ENDPOINT,
        insecure=True
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(otlp_span_exporter))
    trace.set_tracer_provider(tracer_provider)

    logger.info(f"Tracing initialized with endpoint: {OTEL_EXPORTER_OTLP_ENDPOINT}")

    return trace.get_tracer(__name__)


def init_metrics() -> metrics.Meter:
    """
    Initialize OpenTelemetry metrics.

    Returns:
        Meter instance
    """
    resource = Resource.create({"service.name": SERVICE_NAME})

    otlp_metric_exporter = OTLPMetricExporter(
        endpoint=OTEL_EXPORTER_OTLP_ENDPOINT,
        insecure=True
    )
    otlp_metric_reader = PeriodicExportingMetricReader(
        otlp_metric_exporter,
        export_interval_millis=5000
    )

    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[otlp_metric_reader]
    )
    metrics.set_meter_provider(meter_provider)

    logger.info("Metrics initialized with OTLP exporter")

    return metrics.get_meter(__name__)


def init_telemetry() -> bool:
    """
    Install tracing and metrics providers once per process.

    Returns:
        True if telemetry is active
    """
    global _telemetry_initialized

    if not TELEMETRY_ENABLED:
        logger.info("Telemetry disabled")
        return False

    if not _telemetry_initialized:
        init_tracing()
        init_metrics()
        _telemetry_initialized = True

    return True


meter = metrics.get_meter(__name__)

# Order pipeline metrics
orders_created_counter = meter.create_counter(
    "bakery.orders.created",
    description="Total number of committed orders",
    unit="1"
)

order_amount_histogram = meter.create_histogram(
    "bakery.orders.amount",
    description="Committed order totals",
    unit="USD"
)

order_status_updates_counter = meter.create_counter(
    "bakery.orders.status_updates",
    description="Order status changes by target status",
    unit="1"
)

stock_rejections_counter = meter.create_counter(
    "bakery.orders.stock_rejections",
    description="Orders rejected for unknown products or insufficient stock",
    unit="1"
)

order_commit_failures_counter = meter.create_counter(
    "bakery.orders.commit_failures",
    description="Orders that failed to commit after payment succeeded",
    unit="1"
)

# Payment metrics
payment_duration_histogram = meter.create_histogram(
    "bakery.payment.duration",
    description="Payment processing duration",
    unit="s"
)

payment_rejections_counter = meter.create_counter(
    "bakery.payment.rejections",
    description="Payments rejected by the active strategy",
    unit="1"
)

# Event fan-out metrics
subscriber_failures_counter = meter.create_counter(
    "bakery.events.subscriber_failures",
    description="Exceptions raised by event subscribers",
    unit="1"
)

units_sold_counter = meter.create_counter(
    "bakery.inventory.units_sold",
    description="Units sold per product",
    unit="1"
)

# Account metrics
auth_attempts_counter = meter.create_counter(
    "bakery.auth.attempts",
    description="Total number of login and registration attempts",
    unit="1"
)

auth_failures_counter = meter.create_counter(
    "bakery.auth.failures",
    description="Total number of failed login and registration attempts",
    unit="1"
)
