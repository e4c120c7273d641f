"""
Command interpreter: runs parsed commands against a bit buffer.

execute() never raises for engine errors. Unknown operations, unknown
metrics, failing operations, missing macros and macro cycles all come back
as a failed CommandResult carrying the bits reached so far and the number
of operations that did run.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from ..core.clock import Clock, MonotonicClock
from ..core.errors import BitReplayError, MacroCycleError, UnknownMacroError, UnknownMetricError
from ..metrics.registry import MetricRegistry
from ..observability import track_command, track_command_duration, track_operation
from ..ops.registry import OperationRegistry
from .macros import MacroRegistry
from .model import (
    Command,
    Conditional,
    Help,
    LiteralCode,
    Loop,
    MacroCall,
    MacroDefinition,
    OperationCall,
    Pipeline,
)
from .parser import parse, suggest

if TYPE_CHECKING:
    from ..record.recorder import ExecutionRecorder

logger = logging.getLogger(__name__)

HELP_OPERATION_LIMIT = 40
HELP_METRIC_LIMIT = 20


class InterpreterState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of one command.

    Fields:
        success: False if any step failed
        bits: Buffer after the last successful step
        message: Human-readable note on success
        error: Reason on failure
        operations_executed: Operations that ran before completion or failure
        condition_met: Verdict of a conditional, None for other commands
    """
    success: bool
    bits: str
    message: Optional[str] = None
    error: Optional[str] = None
    operations_executed: int = 0
    condition_met: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "success": self.success,
            "bits": self.bits,
            "operationsExecuted": self.operations_executed,
        }
        if self.message is not None:
            out["message"] = self.message
        if self.error is not None:
            out["error"] = self.error
        if self.condition_met is not None:
            out["conditionMet"] = self.condition_met
        return out


class _StepFailure(Exception):
    def __init__(self, error: str, bits: str, executed: int) -> None:
        super().__init__(error)
        self.error = error
        self.bits = bits
        self.executed = executed


class Interpreter:
    """
    Executes commands against a running buffer.

    Usage:
        interpreter = Interpreter(OperationRegistry.default(), MetricRegistry.default())
        result = interpreter.run("NOT | XOR 1100", "1010")
        # result.bits == "1001", result.operations_executed == 2
    """

    def __init__(
        self,
        registry: OperationRegistry,
        metrics: MetricRegistry,
        macros: Optional[MacroRegistry] = None,
        recorder: Optional["ExecutionRecorder"] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.registry = registry
        self.metrics = metrics
        self.macros = macros if macros is not None else MacroRegistry()
        self.recorder = recorder
        self.clock = clock or MonotonicClock()
        self._state = InterpreterState.IDLE

    @property
    def state(self) -> InterpreterState:
        return self._state

    def run(self, text: str, bits: str) -> CommandResult:
        """Parse then execute one line."""
        return self.execute(parse(text), bits)

    def execute(self, command: Command, bits: str) -> CommandResult:
        """
        Execute one command.

        Args:
            command: Parsed command
            bits: Current buffer

        Returns:
            CommandResult; engine errors never escape
        """
        self._state = InterpreterState.RUNNING
        with track_command_duration():
            try:
                result = self._dispatch(command, bits, ())
            except MacroCycleError as e:
                result = CommandResult(success=False, bits=bits, error=str(e))

        self._state = InterpreterState.COMPLETED if result.success else InterpreterState.FAILED
        track_command(command.kind, "ok" if result.success else "error")
        if result.success:
            logger.info(
                "Command executed",
                extra={"kind": command.kind, "operations": result.operations_executed},
            )
        else:
            logger.info(
                "Command failed",
                extra={
                    "kind": command.kind,
                    "operations": result.operations_executed,
                    "error": result.error,
                },
            )
        return result

    def _dispatch(self, command: Command, bits: str, stack: Tuple[str, ...]) -> CommandResult:
        if isinstance(command, Help):
            return CommandResult(success=True, bits=bits, message=self.help_text())

        if isinstance(command, OperationCall):
            return self._run_ops((command,), bits)

        if isinstance(command, Pipeline):
            if not command.operations:
                message = "No operation recognised" if command.raw else None
                return CommandResult(success=True, bits=bits, message=message)
            return self._run_ops(command.operations, bits)

        if isinstance(command, Loop):
            return self._run_loop(command, bits)

        if isinstance(command, Conditional):
            return self._run_conditional(command, bits)

        if isinstance(command, MacroDefinition):
            self.macros.define(command.name, command.body)
            return CommandResult(success=True, bits=bits, message=f"Macro '{command.name}' defined")

        if isinstance(command, MacroCall):
            return self._run_macro(command, bits, stack)

        if isinstance(command, LiteralCode):
            result = self._run_ops((OperationCall("EXEC", {"code": command.code}, raw=command.raw),), bits)
            if result.success:
                return CommandResult(
                    success=True, bits=result.bits, message="Custom code executed",
                    operations_executed=result.operations_executed,
                )
            return CommandResult(
                success=False, bits=bits, error=f"Code error: {result.error}",
                operations_executed=0,
            )

        return CommandResult(success=False, bits=bits, error="Unknown command type")

    def _run_ops(self, ops: Sequence[OperationCall], bits: str, executed: int = 0) -> CommandResult:
        try:
            bits, executed = self._apply_all(ops, bits, executed)
        except _StepFailure as f:
            return CommandResult(success=False, bits=f.bits, error=f.error, operations_executed=f.executed)
        return CommandResult(success=True, bits=bits, operations_executed=executed)

    def _run_loop(self, loop: Loop, bits: str) -> CommandResult:
        executed = 0
        try:
            for _ in range(loop.count):
                bits, executed = self._apply_all(loop.operations, bits, executed)
        except _StepFailure as f:
            return CommandResult(success=False, bits=f.bits, error=f.error, operations_executed=f.executed)
        return CommandResult(
            success=True, bits=bits, message=f"Loop completed {loop.count} iterations",
            operations_executed=executed,
        )

    def _run_conditional(self, command: Conditional, bits: str) -> CommandResult:
        condition = command.condition
        try:
            value = self.metrics.evaluate(condition.metric, bits)
        except UnknownMetricError:
            return CommandResult(
                success=False, bits=bits,
                error=f"Failed to calculate metric: {condition.metric}",
                condition_met=False,
            )

        met = condition.holds(value)
        body = command.then_ops if met else command.else_ops
        result = self._run_ops(body, bits)
        if not result.success:
            return CommandResult(
                success=False, bits=result.bits, error=result.error,
                operations_executed=result.operations_executed, condition_met=met,
            )
        if met:
            message = "Condition met, operations executed"
        elif body:
            message = "Condition not met, else branch executed"
        else:
            message = "Condition not met, skipped"
        return CommandResult(
            success=True, bits=result.bits, message=message,
            operations_executed=result.operations_executed, condition_met=met,
        )

    def _run_macro(self, call: MacroCall, bits: str, stack: Tuple[str, ...]) -> CommandResult:
        name = call.name.lower()
        if name in stack:
            chain = " -> ".join(stack + (name,))
            raise MacroCycleError(f"Macro cycle detected: {chain}")
        try:
            body = self.macros.require(call.name)
        except UnknownMacroError as e:
            return CommandResult(success=False, bits=bits, error=str(e))
        return self._dispatch(body, bits, stack + (name,))

    def _apply_all(self, ops: Sequence[OperationCall], bits: str, executed: int) -> Tuple[str, int]:
        for op in ops:
            try:
                bits = self._apply(op, bits)
            except BitReplayError as e:
                track_operation(op.operation_id, "error")
                raise _StepFailure(str(e), bits, executed) from e
            track_operation(op.operation_id, "ok")
            executed += 1
        return bits, executed

    def _apply(self, op: OperationCall, bits: str) -> str:
        started = self.clock.now()
        outcome = self.registry.execute(op.operation_id, bits, op.params, op.bit_range)
        duration = self.clock.now() - started

        if self.recorder is not None:
            segment_before, segment_after = bits, outcome.bits
            if op.bit_range is not None:
                segment_before = op.bit_range.extract(bits)
                replaced = len(outcome.bits) - (len(bits) - op.bit_range.length)
                segment_after = outcome.bits[op.bit_range.start:op.bit_range.start + replaced]
            self.recorder.record(
                operation=outcome.operation,
                params=outcome.params,
                bit_range=op.bit_range,
                before=bits,
                after=outcome.bits,
                segment_before=segment_before,
                segment_after=segment_after,
                cost=outcome.cost,
                duration=duration,
            )
        return outcome.bits

    def help_text(self) -> str:
        ops = self.registry.ids()
        metrics = self.metrics.ids()
        shown_ops = ", ".join(ops[:HELP_OPERATION_LIMIT]) + ("..." if len(ops) > HELP_OPERATION_LIMIT else "")
        shown_metrics = ", ".join(metrics[:HELP_METRIC_LIMIT]) + (
            "..." if len(metrics) > HELP_METRIC_LIMIT else ""
        )
        lines: List[str] = [
            f"COMMAND REFERENCE ({len(ops)} operations)",
            "",
            "BASIC OPERATIONS:",
            "  NOT                    - Invert all bits",
            "  AND 10101010           - AND with mask",
            "  XOR 11110000           - XOR with mask",
            "  SHL 4                  - Shift left 4 bits",
            "  ROL 2                  - Rotate left 2",
            "  INSERT position=4 bits=101",
            "",
            "RANGE SYNTAX:",
            "  NOT [0:32]             - Apply NOT to bits 0-31",
            "  XOR 1010 [64:128]      - XOR on range 64-127",
            "",
            "PIPELINE SYNTAX:",
            "  NOT | SHL 2 | XOR 1010 - Chain multiple operations",
            "",
            "LOOP SYNTAX:",
            "  REPEAT 4 { ROL 1 }     - Execute ROL 1 four times",
            "",
            "CONDITIONAL SYNTAX:",
            "  IF entropy > 0.5 THEN NOT ELSE XOR 11110000",
            "",
            "MACROS:",
            "  DEFINE scramble = NOT | SHUFFLE | XOR 10101010",
            "  APPLY scramble",
            "",
            "CUSTOM CODE:",
            "  EXEC { bits[::-1] }",
            "  CUSTOM ROL { count: 5 }",
            "",
            f"AVAILABLE OPERATIONS ({len(ops)}):",
            f"  {shown_ops}",
            "",
            f"AVAILABLE METRICS ({len(metrics)}):",
            f"  {shown_metrics}",
        ]
        return "\n".join(lines)

    def suggestions(self, partial: str) -> List[str]:
        """Autocomplete candidates for the console."""
        return suggest(partial, self.registry.ids(), self.metrics.ids(), self.macros.names())
