"""
Engine settings read from BITREPLAY_* environment variables.

Default mode: unlimited cost budget, core metrics recorded per step.
BITREPLAY_COST_BUDGET=0 is a real zero budget; unset or negative means unlimited.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .metrics.registry import CORE_METRICS

DEFAULT_SCRIPT_STEP_BUDGET = 100_000
DEFAULT_SCRIPT_MAX_OUTPUT = 1 << 20
DEFAULT_MAX_MISMATCH_POSITIONS = 100
DEFAULT_VERIFY_WORKERS = 4
DEFAULT_METRICS_PORT = 9108


def _env_int(key: str, minimum: int = 1) -> Optional[int]:
    val = os.getenv(key)
    if not val:
        return None
    try:
        parsed = int(val)
    except ValueError:
        return None
    return parsed if parsed >= minimum else None


def _env_list(key: str) -> Optional[Tuple[str, ...]]:
    val = os.getenv(key)
    if not val:
        return None
    items = tuple(item.strip().lower() for item in val.split(",") if item.strip())
    return items or None


@dataclass(frozen=True)
class EngineSettings:
    cost_budget: Optional[int] = None
    script_step_budget: int = DEFAULT_SCRIPT_STEP_BUDGET
    script_max_output: int = DEFAULT_SCRIPT_MAX_OUTPUT
    max_mismatch_positions: int = DEFAULT_MAX_MISMATCH_POSITIONS
    verify_workers: int = DEFAULT_VERIFY_WORKERS
    results_dir: str = "./results"
    record_metrics: Tuple[str, ...] = CORE_METRICS
    metrics_enabled: bool = False
    metrics_port: int = DEFAULT_METRICS_PORT

    @staticmethod
    def from_env() -> "EngineSettings":
        return EngineSettings(
            cost_budget=_env_int("BITREPLAY_COST_BUDGET", minimum=0),
            script_step_budget=_env_int("BITREPLAY_SCRIPT_STEP_BUDGET") or DEFAULT_SCRIPT_STEP_BUDGET,
            script_max_output=_env_int("BITREPLAY_SCRIPT_MAX_OUTPUT") or DEFAULT_SCRIPT_MAX_OUTPUT,
            max_mismatch_positions=(
                _env_int("BITREPLAY_MAX_MISMATCH_POSITIONS") or DEFAULT_MAX_MISMATCH_POSITIONS
            ),
            verify_workers=_env_int("BITREPLAY_VERIFY_WORKERS") or DEFAULT_VERIFY_WORKERS,
            results_dir=os.getenv("BITREPLAY_RESULTS_DIR", "./results"),
            record_metrics=_env_list("BITREPLAY_RECORD_METRICS") or CORE_METRICS,
            metrics_enabled=os.getenv("BITREPLAY_METRICS_ENABLED", "false").lower() in ("1", "true", "yes"),
            metrics_port=_env_int("BITREPLAY_METRICS_PORT") or DEFAULT_METRICS_PORT,
        )
