"""
Session: one macro table, one recorder and one interpreter over a running
buffer.

A strategy is a list of command lines. Session.run() executes it from an
initial buffer and returns the ExecutionResult to persist; Session.execute()
drives the same machinery one line at a time for the console.
"""

from typing import Iterable, Optional, Union

from .command.interpreter import CommandResult, Interpreter
from .command.macros import MacroRegistry
from .config import EngineSettings
from .core.bits import validate_bits
from .core.canonical import canonical_json_str
from .core.clock import Clock
from .core.ids import stable_id
from .logging_config import get_logger
from .metrics.registry import MetricRegistry
from .ops.registry import OperationRegistry
from .record.models import STATUS_COMPLETED, STATUS_FAILED, ExecutionResult, TransformationStep
from .record.recorder import ExecutionRecorder
from .verify.diff import hash_bits

RESULT_ID_LENGTH = 16

Lines = Union[str, Iterable[str]]


def _iter_lines(lines: Lines) -> Iterable[str]:
    if isinstance(lines, str):
        return lines.splitlines()
    return lines


def _step_key(step: TransformationStep) -> list:
    return [
        step.operation,
        step.params,
        [[r.start, r.end] for r in step.bit_ranges],
        hash_bits(step.full_after_bits),
    ]


class Session:
    """
    Stateful front of the engine.

    Usage:
        session = Session()
        result = session.run(["NOT", "XOR 1100"], "1010", strategy_id="demo")
        assert result.final_bits == "1001"
    """

    def __init__(
        self,
        registry: Optional[OperationRegistry] = None,
        metrics: Optional[MetricRegistry] = None,
        settings: Optional[EngineSettings] = None,
        macros: Optional[MacroRegistry] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings or EngineSettings.from_env()
        self.registry = registry or OperationRegistry.default(
            script_step_budget=self.settings.script_step_budget,
            script_max_output=self.settings.script_max_output,
        )
        self.metrics = metrics or MetricRegistry.default()
        self.macros = macros if macros is not None else MacroRegistry()
        self.recorder = ExecutionRecorder(self.metrics, self.settings.record_metrics)
        self.interpreter = Interpreter(
            self.registry, self.metrics, self.macros, recorder=self.recorder, clock=clock
        )
        self.bits = ""
        self.initial_bits = ""
        self.last_result: Optional[CommandResult] = None

    def load(self, bits: str) -> None:
        """Replace the running buffer and forget recorded steps."""
        self.bits = validate_bits(bits)
        self.initial_bits = self.bits
        self.recorder.reset()
        self.last_result = None

    def execute(self, line: str) -> CommandResult:
        """Run one line against the running buffer."""
        result = self.interpreter.run(line, self.bits)
        self.bits = result.bits
        self.last_result = result
        return result

    def reset(self) -> None:
        self.bits = ""
        self.initial_bits = ""
        self.last_result = None
        self.recorder.reset()
        self.macros.clear()

    def run(
        self,
        lines: Lines,
        initial_bits: str,
        strategy_id: str = "",
        strategy_name: str = "",
    ) -> ExecutionResult:
        """
        Execute a strategy from initial_bits.

        Blank lines and `#` comments are skipped. The first failing command
        stops the run with status "failed"; steps recorded before it are kept.

        Raises:
            InvalidBitsError: If initial_bits is not a bit string
        """
        logger = get_logger(__name__, trace_id=strategy_id or None)
        self.load(initial_bits)
        budget = self.settings.cost_budget
        status = STATUS_COMPLETED
        error: Optional[str] = None
        budget_warned = False

        logger.info("Running strategy", extra={"strategy_name": strategy_name, "length": len(initial_bits)})
        for line_no, line in enumerate(_iter_lines(lines), start=1):
            text = line.strip()
            if not text or text.startswith("#"):
                continue
            result = self.execute(text)
            if not result.success:
                status = STATUS_FAILED
                error = f"line {line_no}: {result.error}"
                logger.warning("Strategy failed", extra={"line": line_no, "error": result.error})
                break
            if budget is not None and not budget_warned and self.recorder.total_cost > budget:
                budget_warned = True
                logger.warning(
                    "Cost budget exceeded",
                    extra={"budget": budget, "total_cost": self.recorder.total_cost, "line": line_no},
                )

        execution = self.snapshot(strategy_id, strategy_name, status=status, error=error)
        logger.info(
            "Strategy finished",
            extra={
                "result_id": execution.id,
                "status": status,
                "steps": execution.operation_count,
                "total_cost": execution.total_cost,
            },
        )
        return execution

    def snapshot(
        self,
        strategy_id: str = "",
        strategy_name: str = "",
        status: str = STATUS_COMPLETED,
        error: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Build an ExecutionResult from the steps recorded since the last load().

        The id is derived from the strategy id, the initial buffer and the
        recorded steps, so the same run always gets the same id.
        """
        steps = list(self.recorder.steps)
        total_cost = sum(step.cost for step in steps)
        budget = self.settings.cost_budget
        result_id = stable_id(
            strategy_id,
            hash_bits(self.initial_bits),
            canonical_json_str([_step_key(s) for s in steps]),
        )[:RESULT_ID_LENGTH]

        return ExecutionResult(
            id=result_id,
            strategy_id=strategy_id,
            strategy_name=strategy_name,
            initial_bits=self.initial_bits,
            final_bits=self.bits,
            initial_metrics=self.metrics.evaluate_many(self.recorder.metric_ids, self.initial_bits),
            final_metrics=self.metrics.evaluate_many(self.recorder.metric_ids, self.bits),
            steps=steps,
            status=status,
            error=error,
            total_cost=total_cost,
            budget_exceeded=budget is not None and total_cost > budget,
            operation_count=len(steps),
        )


def run_strategy(
    lines: Lines,
    initial_bits: str,
    strategy_id: str = "",
    strategy_name: str = "",
    settings: Optional[EngineSettings] = None,
) -> ExecutionResult:
    """Run a strategy in a fresh session."""
    return Session(settings=settings).run(lines, initial_bits, strategy_id, strategy_name)
