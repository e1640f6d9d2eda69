"""OpenTelemetry and structured logging setup for the catalog core."""

import logging
import os

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger.json import JsonFormatter

logger = logging.getLogger(__name__)

SERVICE_NAME = "catalog-admin"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
METRIC_EXPORT_INTERVAL_MS = 60000
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def get_service_resource() -> Resource:
    """Describe the console's catalog core as an OpenTelemetry resource."""
    return Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME),
            "service.namespace": "catalog",
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        }
    )


def exporters_enabled() -> bool:
    """OTLP export is off in the test environment."""
    return os.getenv("ENVIRONMENT", "development") != "test"


def install_providers(resource: Resource, export: bool) -> None:
    """Install the global tracer and meter providers.

    Args:
        resource: Service resource attached to every span and metric
        export: Whether spans and metrics are shipped to the OTLP collector
    """
    tracer_provider = TracerProvider(resource=resource)
    metric_readers = []

    if export:
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT)
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces"))
        )
        metric_readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(endpoint=f"{endpoint}/v1/metrics"),
                export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
            )
        )
        logger.info(f"OTLP export configured with endpoint: {endpoint}")

    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=metric_readers))


def instrument_store_clients() -> None:
    """Trace catalog store (httpx) and asset store (botocore) requests."""
    for instrumentor in (HTTPXClientInstrumentor(), BotocoreInstrumentor()):
        if not instrumentor.is_instrumented_by_opentelemetry:
            instrumentor.instrument()


def setup_observability(enable_exporters: bool = True) -> None:
    """Initialize tracing, metrics and store client instrumentation.

    Args:
        enable_exporters: Ship telemetry over OTLP; ignored (off) when
            ENVIRONMENT is "test"
    """
    export = enable_exporters and exporters_enabled()
    install_providers(get_service_resource(), export)
    instrument_store_clients()
    logger.info(f"Observability configured (export={'on' if export else 'off'})")


def configure_logging(log_level: str = "INFO") -> None:
    """Route all logging through one JSON stream handler on the root logger.

    Args:
        log_level: Level name; LOG_LEVEL in the environment takes precedence
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter(LOG_FORMAT, timestamp=True, static_fields={"service": SERVICE_NAME})
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    logger.info(f"JSON logging configured at {level_name} level")
