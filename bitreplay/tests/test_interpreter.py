"""
Tests for the command interpreter.

The interpreter never raises for engine errors; failures come back as
CommandResult(success=False) with the bits reached so far.
"""

import pytest

from bitreplay.command import Interpreter, InterpreterState, MacroRegistry
from bitreplay.core.clock import DeterministicClock
from bitreplay.metrics import MetricRegistry
from bitreplay.ops import OperationRegistry
from bitreplay.record import ExecutionRecorder

REGISTRY = OperationRegistry.default()
METRICS = MetricRegistry.default()


def make_interpreter(**kwargs):
    return Interpreter(REGISTRY, METRICS, **kwargs)


def test_single_operations():
    interp = make_interpreter()
    assert interp.run("NOT", "10101010").bits == "01010101"
    assert interp.run("AND 11110000", "10101010").bits == "10100000"
    result = interp.run("XOR 11110000", "10101010")
    assert result.success
    assert result.bits == "01011010"
    assert result.operations_executed == 1


def test_pipeline_matches_sequential_execution():
    interp = make_interpreter()
    piped = interp.run("NOT | XOR 1100 | ROL 1", "1010")
    step = "1010"
    for line in ("NOT", "XOR 1100", "ROL 1"):
        step = interp.run(line, step).bits
    assert piped.bits == step
    assert piped.operations_executed == 3


def test_repeat():
    interp = make_interpreter()
    result = interp.run("REPEAT 2 { XOR 1111 }", "1010")
    assert result.bits == "1010"
    assert result.operations_executed == 2
    assert result.message == "Loop completed 2 iterations"

    result = interp.run("REPEAT 4 { ROL 1 }", "1000")
    assert result.bits == "1000"
    assert result.operations_executed == 4


def test_repeated_rotation_on_a_byte():
    interp = make_interpreter()
    looped = interp.run("REPEAT 4 { ROL 1 }", "10010110")
    assert looped.bits == "01101001"
    assert looped.bits == interp.run("ROL 4", "10010110").bits


def test_reference_scenarios():
    interp = make_interpreter()
    assert interp.run("AND 11110000", "11111111").bits == "11110000"
    assert interp.run("REPEAT 2 { XOR 00001111 }", "11111111").bits == "11111111"


def test_repeat_zero_is_a_noop():
    result = make_interpreter().run("REPEAT 0 { NOT }", "1010")
    assert result.success
    assert result.bits == "1010"
    assert result.operations_executed == 0


def test_partial_pipeline_failure_keeps_progress():
    result = make_interpreter().run("NOT | NOPE | NOT", "1100")
    assert not result.success
    assert result.bits == "0011"
    assert result.operations_executed == 1
    assert "NOPE" in result.error


def test_failing_operation_inside_loop_counts_completed_steps():
    result = make_interpreter().run("REPEAT 3 { NOT ; NOPE }", "10")
    assert not result.success
    assert result.operations_executed == 1


def test_conditional_branches():
    interp = make_interpreter()
    met = interp.run("IF balance > 0.5 THEN NOT ELSE ROL 1", "1110")
    assert met.condition_met is True
    assert met.bits == "0001"
    assert met.message == "Condition met, operations executed"

    other = interp.run("IF balance > 0.5 THEN NOT ELSE ROL 1", "1000")
    assert other.condition_met is False
    assert other.bits == "0001"
    assert other.message == "Condition not met, else branch executed"

    skipped = interp.run("IF entropy > 0.5 THEN NOT", "0000")
    assert skipped.success
    assert skipped.condition_met is False
    assert skipped.bits == "0000"
    assert skipped.message == "Condition not met, skipped"


def test_conditional_unknown_metric_fails():
    result = make_interpreter().run("IF wallclock > 1 THEN NOT", "1010")
    assert not result.success
    assert result.error == "Failed to calculate metric: wallclock"
    assert result.bits == "1010"


def test_macro_define_and_apply():
    interp = make_interpreter()
    defined = interp.run("DEFINE flip = NOT", "1100")
    assert defined.success
    assert defined.bits == "1100"
    assert defined.message == "Macro 'flip' defined"
    assert interp.run("APPLY flip", "1100").bits == "0011"
    assert interp.run("APPLY FLIP", "1100").bits == "0011"


def test_unknown_macro_fails():
    result = make_interpreter().run("APPLY missing", "1100")
    assert not result.success
    assert result.error == "Macro 'missing' not found"


def test_macro_cycle_is_reported_not_raised():
    interp = make_interpreter()
    interp.run("DEFINE a = APPLY b", "1")
    interp.run("DEFINE b = APPLY a", "1")
    result = interp.run("APPLY a", "1")
    assert not result.success
    assert result.error == "Macro cycle detected: a -> b -> a"
    assert interp.state == InterpreterState.FAILED


def test_macros_are_scoped_to_their_registry():
    first = make_interpreter(macros=MacroRegistry())
    second = make_interpreter(macros=MacroRegistry())
    first.run("DEFINE flip = NOT", "1")
    assert not second.run("APPLY flip", "1").success


def test_exec():
    interp = make_interpreter()
    result = interp.run("EXEC { bits[::-1] }", "1100")
    assert result.success
    assert result.bits == "0011"
    assert result.message == "Custom code executed"

    bad = interp.run("EXEC { __import__('os') }", "1100")
    assert not bad.success
    assert bad.error.startswith("Code error:")
    assert bad.bits == "1100"


def test_custom_command():
    result = make_interpreter().run('CUSTOM INSERT {"position": 2, "bits": "11"}', "0000")
    assert result.bits == "001100"


def test_ranges_scope_the_operation():
    result = make_interpreter().run("NOT [0:4]", "00000000")
    assert result.bits == "11110000"


def test_out_of_range_fails():
    result = make_interpreter().run("NOT [0:16]", "0000")
    assert not result.success
    assert result.bits == "0000"


@pytest.mark.parametrize("line", [
    "PAD_LEFT 99999999999999999999",
    "PAD_RIGHT 99999999999999999999",
    "PAD_LEFT 5000000000",
    "NOT | PAD alignment=99999999999",
])
def test_oversized_counts_fail_without_raising(line):
    result = make_interpreter().run(line, "101")
    assert not result.success
    assert "exceeds" in result.error
    assert len(result.bits) == 3


def test_unrecognised_input_is_a_noop():
    result = make_interpreter().run("!!!", "1010")
    assert result.success
    assert result.bits == "1010"
    assert result.operations_executed == 0
    assert result.message == "No operation recognised"


def test_help():
    result = make_interpreter().run("HELP", "1")
    assert result.success
    assert "COMMAND REFERENCE" in result.message


def test_state_transitions():
    interp = make_interpreter()
    assert interp.state == InterpreterState.IDLE
    interp.run("NOT", "1")
    assert interp.state == InterpreterState.COMPLETED
    interp.run("NOPE", "1")
    assert interp.state == InterpreterState.FAILED


def test_recorder_receives_every_successful_operation():
    recorder = ExecutionRecorder(METRICS)
    clock = DeterministicClock(step=0.5)
    interp = make_interpreter(recorder=recorder, clock=clock)
    interp.run("NOT [0:2] | ROL 1 | NOPE", "0011")

    steps = recorder.steps
    assert [s.operation for s in steps] == ["NOT", "ROL"]
    first = steps[0]
    assert first.full_before_bits == "0011"
    assert first.full_after_bits == "1111"
    assert first.before_bits == "00"
    assert first.after_bits == "11"
    assert first.bit_range.start == 0 and first.bit_range.end == 2
    assert first.duration == pytest.approx(0.5)
    assert steps[1].full_before_bits == first.full_after_bits
    assert steps[1].params == {"count": 1}
    assert set(first.metrics) == {"entropy", "balance", "hamming_weight", "transition_count", "run_length_avg"}


def test_to_dict_uses_camel_case():
    out = make_interpreter().run("IF balance >= 0 THEN NOT", "10").to_dict()
    assert out["operationsExecuted"] == 1
    assert out["conditionMet"] is True
    assert "error" not in out


def test_suggestions_include_macros():
    interp = make_interpreter()
    interp.run("DEFINE scramble = NOT", "1")
    assert "APPLY scramble" in interp.suggestions("scr")
    assert "NOT" in interp.suggestions("NO")
