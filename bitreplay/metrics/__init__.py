"""
Metric evaluation: pure functions from a bit buffer to a number.
"""

from .registry import CORE_METRICS, MetricRegistry

__all__ = ["CORE_METRICS", "MetricRegistry"]
