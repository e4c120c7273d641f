"""
Metric registry: named pure functions from a bit buffer to a number.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from ..core.errors import UnknownMetricError

logger = logging.getLogger(__name__)

MetricFn = Callable[[str], float]

CORE_METRICS = ("entropy", "balance", "hamming_weight", "transition_count", "run_length_avg")


def _normalize(metric_id: str) -> str:
    return str(metric_id).strip().lower()


class MetricRegistry:
    """
    Registry of metric functions.

    Usage:
        metrics = MetricRegistry.default()
        metrics.evaluate("entropy", "1010")  # 1.0
    """

    def __init__(self) -> None:
        self._metrics: Dict[str, MetricFn] = {}

    @classmethod
    def default(cls) -> "MetricRegistry":
        """Build a registry holding the built-in metric catalog."""
        from .builtins import BUILTIN_METRICS

        registry = cls()
        for metric_id, fn in BUILTIN_METRICS.items():
            registry.register(metric_id, fn)
        return registry

    def register(self, metric_id: str, fn: MetricFn) -> None:
        if not callable(fn):
            raise TypeError(f"metric {metric_id!r} is not callable")
        self._metrics[_normalize(metric_id)] = fn

    def unregister(self, metric_id: str) -> bool:
        return self._metrics.pop(_normalize(metric_id), None) is not None

    def get(self, metric_id: str) -> Optional[MetricFn]:
        return self._metrics.get(_normalize(metric_id))

    def ids(self) -> List[str]:
        return sorted(self._metrics)

    def __contains__(self, metric_id: object) -> bool:
        return isinstance(metric_id, str) and _normalize(metric_id) in self._metrics

    def __len__(self) -> int:
        return len(self._metrics)

    def evaluate(self, metric_id: str, bits: str) -> float:
        """
        Evaluate one metric.

        Raises:
            UnknownMetricError: If metric_id is not registered
        """
        fn = self.get(metric_id)
        if fn is None:
            raise UnknownMetricError(f"Unknown metric: {metric_id}")
        return fn(bits)

    def evaluate_many(self, metric_ids: Iterable[str], bits: str) -> Dict[str, float]:
        return {_normalize(m): self.evaluate(m, bits) for m in metric_ids}

    def evaluate_core(self, bits: str) -> Dict[str, float]:
        return self.evaluate_many(CORE_METRICS, bits)
