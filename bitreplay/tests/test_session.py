"""
Tests for strategy runs through a Session.
"""

import pytest

from bitreplay.config import EngineSettings
from bitreplay.core.clock import DeterministicClock
from bitreplay.core.errors import InvalidBitsError
from bitreplay.session import RESULT_ID_LENGTH, Session, run_strategy

STRATEGY = """
# scramble
NOT | XOR 10101010
SHUFFLE
REPEAT 2 { ROL 3 }
IF entropy > 0.5 THEN GRAY ELSE NOT
"""


def new_session(**kwargs):
    kwargs.setdefault("settings", EngineSettings())
    return Session(**kwargs)


def test_run_completes_and_records_every_operation():
    result = new_session().run(STRATEGY, "1100101011110000", "demo", "Demo")
    assert result.status == "completed"
    assert result.error is None
    assert result.operation_count == len(result.steps) == 6
    assert result.steps[-1].full_after_bits == result.final_bits
    assert result.initial_bits == "1100101011110000"
    assert len(result.id) == RESULT_ID_LENGTH
    assert set(result.final_metrics) == set(result.initial_metrics)


def test_steps_form_a_continuous_chain():
    result = new_session().run(STRATEGY, "1100101011110000")
    prev = result.initial_bits
    for i, step in enumerate(result.steps):
        assert step.index == i
        assert step.full_before_bits == prev
        prev = step.full_after_bits


def test_same_run_yields_same_id_and_bits_100_times():
    ids = set()
    finals = set()
    for _ in range(100):
        result = run_strategy(STRATEGY, "1100101011110000", "demo", settings=EngineSettings())
        ids.add(result.id)
        finals.add(result.final_bits)
    assert len(ids) == 1
    assert len(finals) == 1


def test_id_ignores_durations():
    slow = new_session(clock=DeterministicClock(step=5.0)).run(STRATEGY, "1100101011110000", "demo")
    fast = new_session(clock=DeterministicClock(step=0.001)).run(STRATEGY, "1100101011110000", "demo")
    assert slow.id == fast.id
    assert slow.steps[0].duration != fast.steps[0].duration


def test_id_depends_on_strategy_and_input():
    base = new_session().run(["NOT"], "1010", "a")
    assert new_session().run(["NOT"], "1010", "b").id != base.id
    assert new_session().run(["NOT"], "1011", "a").id != base.id


def test_failure_stops_the_run():
    result = new_session().run(["NOT", "NOPE", "NOT"], "1100", "broken")
    assert result.status == "failed"
    assert result.error.startswith("line 2:")
    assert result.operation_count == 1
    assert result.final_bits == "0011"


def test_budget_exceeded_is_flagged_not_enforced():
    result = new_session(settings=EngineSettings(cost_budget=2)).run(["NOT", "NOT", "NOT"], "10")
    assert result.status == "completed"
    assert result.total_cost == 3
    assert result.budget_exceeded
    assert result.final_bits == "01"


def test_blank_lines_and_comments_are_skipped():
    result = new_session().run(["", "  # comment", "NOT", "   "], "10")
    assert result.operation_count == 1
    assert result.error is None


def test_invalid_initial_bits():
    with pytest.raises(InvalidBitsError):
        new_session().run(["NOT"], "10a1")


def test_console_style_execution_and_snapshot():
    session = new_session()
    session.load("1010")
    session.execute("DEFINE flip = NOT")
    session.execute("APPLY flip")
    assert session.bits == "0101"
    snapshot = session.snapshot("console")
    assert snapshot.operation_count == 1
    assert snapshot.final_bits == "0101"

    session.load("1111")
    assert session.snapshot().operation_count == 0
    assert "flip" in session.macros

    session.reset()
    assert session.bits == ""
    assert len(session.macros) == 0


def test_zero_budget_flags_any_cost():
    result = new_session(settings=EngineSettings(cost_budget=0)).run(["NOT"], "10")
    assert result.budget_exceeded
    assert result.status == "completed"


def test_last_result_tracks_the_latest_command():
    session = new_session()
    session.load("10")
    assert session.last_result is None
    session.execute("NOT")
    assert session.last_result.success
    session.execute("NOPE")
    assert not session.last_result.success
    session.load("11")
    assert session.last_result is None
