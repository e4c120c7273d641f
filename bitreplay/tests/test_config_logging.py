"""
Tests for settings, logging setup and Prometheus instrumentation.
"""

import io
import json
import logging

import pytest

from bitreplay import observability
from bitreplay.config import DEFAULT_SCRIPT_STEP_BUDGET, EngineSettings
from bitreplay.logging_config import get_logger, setup_logging
from bitreplay.metrics import CORE_METRICS


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_settings_defaults(monkeypatch):
    for key in ("BITREPLAY_COST_BUDGET", "BITREPLAY_RECORD_METRICS", "BITREPLAY_METRICS_ENABLED"):
        monkeypatch.delenv(key, raising=False)
    settings = EngineSettings.from_env()
    assert settings.cost_budget is None
    assert settings.script_step_budget == DEFAULT_SCRIPT_STEP_BUDGET
    assert settings.record_metrics == CORE_METRICS
    assert settings.metrics_enabled is False


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("BITREPLAY_COST_BUDGET", "50")
    monkeypatch.setenv("BITREPLAY_VERIFY_WORKERS", "8")
    monkeypatch.setenv("BITREPLAY_RECORD_METRICS", "Entropy, balance,")
    monkeypatch.setenv("BITREPLAY_METRICS_ENABLED", "true")
    monkeypatch.setenv("BITREPLAY_RESULTS_DIR", "/tmp/results")
    settings = EngineSettings.from_env()
    assert settings.cost_budget == 50
    assert settings.verify_workers == 8
    assert settings.record_metrics == ("entropy", "balance")
    assert settings.metrics_enabled is True
    assert settings.results_dir == "/tmp/results"


@pytest.mark.parametrize("raw", ["-5", "lots", ""])
def test_invalid_budget_means_unlimited(monkeypatch, raw):
    monkeypatch.setenv("BITREPLAY_COST_BUDGET", raw)
    assert EngineSettings.from_env().cost_budget is None


def test_zero_budget_is_kept(monkeypatch):
    monkeypatch.setenv("BITREPLAY_COST_BUDGET", "0")
    monkeypatch.setenv("BITREPLAY_VERIFY_WORKERS", "0")
    settings = EngineSettings.from_env()
    assert settings.cost_budget == 0
    assert settings.verify_workers == 4


def test_json_logging_carries_trace_id(restore_root_logger):
    stream = io.StringIO()
    setup_logging(level="INFO", fmt="json", stream=stream)
    get_logger("bitreplay.test", trace_id="strategy-1").info("hello", extra={"steps": 3})

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["message"] == "hello"
    assert record["level"] == "INFO"
    assert record["logger"] == "bitreplay.test"
    assert record["trace_id"] == "strategy-1"
    assert record["steps"] == 3


def test_text_logging_defaults_trace_id(restore_root_logger):
    stream = io.StringIO()
    setup_logging(level="DEBUG", fmt="text", stream=stream)
    logging.getLogger("bitreplay.test").debug("plain")
    assert "plain [trace_id=N/A]" in stream.getvalue()


def test_level_filters(restore_root_logger):
    stream = io.StringIO()
    setup_logging(level="WARNING", fmt="text", stream=stream)
    logging.getLogger("bitreplay.test").info("hidden")
    assert stream.getvalue() == ""


def test_track_helpers_are_noops_before_init(monkeypatch):
    monkeypatch.setattr(observability, "OPERATIONS_TOTAL", None)
    monkeypatch.setattr(observability, "COMMAND_DURATION", None)
    observability.track_operation("NOT", "ok")
    with observability.track_command_duration():
        pass


def test_init_metrics_is_idempotent():
    observability.init_metrics()
    counter = observability.OPERATIONS_TOTAL
    observability.init_metrics()
    assert observability.OPERATIONS_TOTAL is counter

    before = counter.labels(operation="NOT", outcome="ok")._value.get()
    observability.track_operation("NOT", "ok")
    assert counter.labels(operation="NOT", outcome="ok")._value.get() == before + 1


def test_disabled_metrics_server_does_nothing():
    observability.start_metrics_server(False, 9108)
