"""
Replay of recorded executions.

Replay re-applies recorded operations with their recorded resolved params.
Must be 100% deterministic: same initial bits + same steps -> same buffer.
"""

from .runner import ReplayResult, replay_steps

__all__ = [
    "ReplayResult",
    "replay_steps",
]
