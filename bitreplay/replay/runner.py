"""
Replay runner: reconstruct a buffer from recorded steps.

Replay is pure: each step's operation is applied with its recorded resolved
params and range. Params are never re-resolved, so a replay reproduces
exactly what was recorded even if defaults change later.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ..core.errors import BitReplayError
from ..ops.registry import OperationRegistry
from ..record.models import TransformationStep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplayResult:
    """
    Result of replay operation.

    Fields:
        bits: Buffer after the last applied step
        applied: Number of steps applied
        divergent_step: Index of the first step whose output differs from its
            recorded after-buffer (None if none did)
        error: Failure reason if a step could not be applied
    """
    bits: str
    applied: int
    divergent_step: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.divergent_step is None


def replay_steps(
    registry: OperationRegistry,
    initial_bits: str,
    steps: Iterable[TransformationStep],
    stop_on_divergence: bool = True,
) -> ReplayResult:
    """
    Re-apply recorded steps.

    Same initial bits and steps always produce the same buffer.

    Args:
        registry: Registry holding every recorded operation id
        initial_bits: Buffer the recording started from
        steps: Recorded steps in order
        stop_on_divergence: Stop at the first step whose output differs from
            its recorded after-buffer

    Returns:
        ReplayResult with final bits and count
    """
    bits = initial_bits
    count = 0
    divergent: Optional[int] = None

    for step in steps:
        try:
            bits = registry.apply(step.operation, bits, step.params, step.bit_range)
        except BitReplayError as e:
            logger.warning(
                "Replay step failed",
                extra={"index": step.index, "operation": step.operation, "error": str(e)},
            )
            return ReplayResult(bits=bits, applied=count, divergent_step=step.index, error=str(e))
        count += 1
        if bits != step.full_after_bits and divergent is None:
            divergent = step.index
            if stop_on_divergence:
                break

    return ReplayResult(bits=bits, applied=count, divergent_step=divergent)
