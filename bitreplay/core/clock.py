"""
Clocks for step timing.

Durations are recorded for display only; they never feed back into
operation results, so replays stay deterministic regardless of the clock.
"""

import time
from dataclasses import dataclass, field
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        ...


class MonotonicClock:
    """Wall-clock-independent monotonic seconds (time.perf_counter)."""

    def now(self) -> float:
        return time.perf_counter()


@dataclass
class DeterministicClock:
    """
    Deterministic time source.

    Every call to now() advances by step, so recorded durations are
    reproducible in tests.
    """
    current: float = 0.0
    step: float = 0.001
    calls: int = field(default=0, init=False)

    def now(self) -> float:
        value = self.current
        self.current += self.step
        self.calls += 1
        return value
