"""
Execution recorder: turns each applied operation into a TransformationStep.
"""

import logging
import threading
from typing import Any, Iterable, Mapping, Optional, Tuple

from ..core.bits import BitRange
from ..core.canonical import canonicalize
from ..core.errors import UnknownMetricError
from ..metrics.registry import CORE_METRICS, MetricRegistry
from .models import StepRange, TransformationStep

logger = logging.getLogger(__name__)


class ExecutionRecorder:
    """
    Accumulates recorded steps for one run.

    Args:
        metrics: Registry used to snapshot metrics of every after-buffer
        metric_ids: Metrics to snapshot (validated up front)

    Raises:
        UnknownMetricError: If a metric id is not registered
    """

    def __init__(self, metrics: MetricRegistry, metric_ids: Iterable[str] = CORE_METRICS) -> None:
        self.metrics = metrics
        self.metric_ids = tuple(m.lower() for m in metric_ids)
        for metric_id in self.metric_ids:
            if metric_id not in metrics:
                raise UnknownMetricError(f"Unknown metric: {metric_id}")
        self._steps: list = []
        self._lock = threading.Lock()

    def record(
        self,
        operation: str,
        params: Mapping[str, Any],
        bit_range: Optional[BitRange],
        before: str,
        after: str,
        segment_before: str,
        segment_after: str,
        cost: int,
        duration: float,
    ) -> TransformationStep:
        """Snapshot one successfully applied operation."""
        with self._lock:
            step = TransformationStep(
                index=len(self._steps),
                operation=operation,
                params=canonicalize(dict(params)),
                bit_ranges=[StepRange.from_bit_range(bit_range)] if bit_range is not None else [],
                full_before_bits=before,
                full_after_bits=after,
                before_bits=segment_before,
                after_bits=segment_after,
                metrics=self.metrics.evaluate_many(self.metric_ids, after),
                cost=cost,
                duration=max(0.0, duration),
            )
            self._steps.append(step)
        logger.debug("Recorded step", extra={"index": step.index, "operation": operation})
        return step

    @property
    def steps(self) -> Tuple[TransformationStep, ...]:
        with self._lock:
            return tuple(self._steps)

    @property
    def total_cost(self) -> int:
        with self._lock:
            return sum(step.cost for step in self._steps)

    def __len__(self) -> int:
        with self._lock:
            return len(self._steps)

    def reset(self) -> None:
        with self._lock:
            self._steps.clear()
