"""
Tests for the metric registry and built-in metrics.
"""

import math

import pytest

from bitreplay.core.errors import UnknownMetricError
from bitreplay.metrics import CORE_METRICS, MetricRegistry

METRICS = MetricRegistry.default()


def test_core_metrics_are_registered():
    for metric_id in CORE_METRICS:
        assert metric_id in METRICS


def test_ids_are_case_insensitive():
    assert METRICS.evaluate("ENTROPY", "1010") == METRICS.evaluate("entropy", "1010")


def test_unknown_metric_raises():
    with pytest.raises(UnknownMetricError):
        METRICS.evaluate("time_stamp", "1010")


def test_entropy_values():
    assert METRICS.evaluate("entropy", "1010") == 1.0
    assert METRICS.evaluate("entropy", "0000") == 0
    assert METRICS.evaluate("entropy", "1111") == 0
    expected = round(-(0.25 * math.log2(0.25) + 0.75 * math.log2(0.75)), 6)
    assert METRICS.evaluate("entropy", "1000") == expected


def test_basic_counts():
    assert METRICS.evaluate("balance", "1100") == 0.5
    assert METRICS.evaluate("hamming_weight", "1101") == 3
    assert METRICS.evaluate("popcount", "1101") == 3
    assert METRICS.evaluate("transition_count", "1010") == 3
    assert METRICS.evaluate("run_length_avg", "110001") == 2.0


def test_every_metric_returns_zero_on_empty():
    for metric_id in METRICS.ids():
        assert METRICS.evaluate(metric_id, "") == 0, metric_id


def test_degenerate_buffers_do_not_divide_by_zero():
    """All-zero and all-one buffers must evaluate every metric without error."""
    for bits in ("0", "1", "0" * 64, "1" * 64):
        for metric_id in METRICS.ids():
            value = METRICS.evaluate(metric_id, bits)
            assert isinstance(value, (int, float)), metric_id
            assert not (isinstance(value, float) and math.isnan(value)), metric_id


def test_metrics_are_pure():
    bits = "1101001110001011" * 8
    first = METRICS.evaluate_many(METRICS.ids(), bits)
    for _ in range(10):
        assert METRICS.evaluate_many(METRICS.ids(), bits) == first


def test_evaluate_core_keys():
    assert set(METRICS.evaluate_core("1100")) == set(CORE_METRICS)


def test_register_custom_metric():
    registry = MetricRegistry()
    registry.register("Ones", lambda bits: bits.count("1"))
    assert registry.evaluate("ones", "1011") == 3
    assert registry.unregister("ONES")
    assert "ones" not in registry


def test_wall_clock_metrics_are_absent():
    assert "time_stamp" not in METRICS
    assert "execution_id" not in METRICS
