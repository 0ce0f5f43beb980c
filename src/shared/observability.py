import logging
import os

from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import start_http_server

from src.config import EngineConfig
from src.shared.telemetry import Telemetry

SERVICE_NAME = "maquiz-engine"

_telemetry = Telemetry("Observability")


def configure_observability(metrics_port: int = EngineConfig.METRICS_PORT) -> bool:
    """
    Sends traces and logs over OTLP and exposes Prometheus metrics.
    Does nothing unless OTEL_EXPORTER_OTLP_ENDPOINT and
    OTEL_EXPORTER_OTLP_HEADERS are both set. Returns whether it was enabled.
    """
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    if not endpoint or not headers:
        _telemetry.log_warning(
            "OTEL env vars not set, telemetry stays local",
            has_endpoint=bool(endpoint),
            has_headers=bool(headers),
        )
        return False

    resource = Resource.create({"service.name": SERVICE_NAME})

    # --- A. Tracing ---
    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=headers))
    )
    trace.set_tracer_provider(trace_provider)

    # --- B. Logging ---
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint, headers=headers))
    )
    set_logger_provider(logger_provider)
    handler = LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
    logging.getLogger().addHandler(handler)

    # --- C. Metrics ---
    try:
        start_http_server(metrics_port)
        _telemetry.log_info("Prometheus metrics server started", port=metrics_port)
    except OSError as e:
        _telemetry.log_warning(
            "Prometheus port already in use, skipping", port=metrics_port, error=str(e)
        )

    return True
