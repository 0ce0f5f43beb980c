import logging
import sys
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from prometheus_client import REGISTRY, Counter, Histogram

# --- Context for Correlation IDs ---
correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="system")

# --- Prometheus Metric Definitions ---
DURATION_METRIC_NAME = "maquiz_method_duration_seconds"
EVENTS_METRIC_NAME = "maquiz_engine_events"

METHOD_DURATION: Histogram
ENGINE_EVENTS: Counter

try:
    METHOD_DURATION = Histogram(
        DURATION_METRIC_NAME, "Time spent in method", ["component", "method"]
    )
except ValueError:
    # Module re-imported (test reloads): reuse the registered collector.
    METHOD_DURATION = cast(
        Histogram, REGISTRY._names_to_collectors[DURATION_METRIC_NAME]
    )

try:
    ENGINE_EVENTS = Counter(
        EVENTS_METRIC_NAME, "Quiz engine events", ["component", "event"]
    )
except ValueError:
    # Counters register under both the base name and the _total suffix.
    ENGINE_EVENTS = cast(
        Counter, REGISTRY._names_to_collectors[f"{EVENTS_METRIC_NAME}_total"]
    )

tracer = trace.get_tracer("maquiz")

# --- Type Definitions for Decorator ---
P = ParamSpec("P")
R = TypeVar("R")


def measure_time(metric_name: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for timing methods: Prometheus histogram, an OpenTelemetry
    span and a log line through the instance's ``telemetry`` attribute.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            # Used on instance methods, so args[0] is 'self'.
            self_obj: Any = args[0] if args else None

            component = self_obj.__class__.__name__ if self_obj else "Unknown"
            method = func.__name__
            telemetry = getattr(self_obj, "telemetry", None)

            with tracer.start_as_current_span(metric_name) as span:
                span.set_attribute("maquiz.component", component)
                span.set_attribute("maquiz.trace_id", Telemetry.get_trace_id())
                start = time.perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    duration = time.perf_counter() - start
                    METHOD_DURATION.labels(component=component, method=method).observe(
                        duration
                    )
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    if telemetry:
                        telemetry.log_error(
                            f"💥 Failed: {metric_name}",
                            e,
                            duration_ms=round(duration * 1000, 2),
                        )
                    raise

                duration = time.perf_counter() - start
                METHOD_DURATION.labels(component=component, method=method).observe(
                    duration
                )
                if telemetry:
                    telemetry.log_info(
                        f"⏱️ {metric_name}", duration_ms=round(duration * 1000, 2)
                    )
                return result

        return wrapper

    return decorator


class Telemetry:
    """
    Facade for Logs, Metrics, and Tracing.
    """

    def __init__(self, component_name: str) -> None:
        self.component = component_name
        self.logger = logging.getLogger(self.component)

        # Ensure we output to console if not configured
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    @staticmethod
    def start_trace() -> str:
        c_id = str(uuid.uuid4())[:8]
        correlation_id_ctx.set(c_id)
        return c_id

    @staticmethod
    def get_trace_id() -> str:
        return correlation_id_ctx.get()

    def count(self, event: str) -> None:
        ENGINE_EVENTS.labels(component=self.component, event=event).inc()

    def log_info(self, event: str, **kwargs: Any) -> None:
        self.logger.info(f"[{self.get_trace_id()}] {event} | {kwargs}")

    def log_warning(self, event: str, **kwargs: Any) -> None:
        self.logger.warning(f"[{self.get_trace_id()}] ⚠️ {event} | {kwargs}")

    def log_error(self, event: str, error: Exception, **kwargs: Any) -> None:
        trace_id = self.get_trace_id()
        msg = f"[{trace_id}] ❌ {event} | Error: {str(error)} | {kwargs}"
        self.logger.error(msg, exc_info=True)
