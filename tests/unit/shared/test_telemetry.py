import logging

import pytest
from prometheus_client import REGISTRY

from src.shared.telemetry import (
    ENGINE_EVENTS,
    Telemetry,
    measure_time,
)


class Worker:
    def __init__(self):
        self.telemetry = Telemetry("TelemetryTestWorker")

    @measure_time("worker_ok")
    def ok(self, value):
        return value * 2

    @measure_time("worker_fail")
    def fail(self):
        raise RuntimeError("kaput")


def test_measure_time_returns_result_and_logs(caplog):
    worker = Worker()

    with caplog.at_level(logging.INFO, logger="TelemetryTestWorker"):
        assert worker.ok(21) == 42

    assert any("worker_ok" in r.getMessage() for r in caplog.records)


def test_measure_time_logs_and_reraises(caplog):
    worker = Worker()

    with caplog.at_level(logging.ERROR, logger="TelemetryTestWorker"):
        with pytest.raises(RuntimeError, match="kaput"):
            worker.fail()

    assert any("Failed: worker_fail" in r.getMessage() for r in caplog.records)


def test_trace_id_is_prefixed_to_messages(caplog):
    telemetry = Telemetry("TelemetryTestTrace")
    trace_id = Telemetry.start_trace()

    with caplog.at_level(logging.INFO, logger="TelemetryTestTrace"):
        telemetry.log_info("hello", user="ann")

    assert Telemetry.get_trace_id() == trace_id
    assert f"[{trace_id}] hello" in caplog.records[-1].getMessage()


def test_count_increments_event_counter():
    telemetry = Telemetry("TelemetryTestCounter")
    counter = ENGINE_EVENTS.labels(component="TelemetryTestCounter", event="ping")
    before = counter._value.get()

    telemetry.count("ping")

    assert counter._value.get() == before + 1


def test_measure_time_observes_duration_histogram():
    labels = {"component": "Worker", "method": "ok"}
    before = REGISTRY.get_sample_value("maquiz_method_duration_seconds_count", labels)

    Worker().ok(1)

    after = REGISTRY.get_sample_value("maquiz_method_duration_seconds_count", labels)
    assert after == (before or 0) + 1
