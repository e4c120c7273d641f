"""
Tests for replay verification.
"""

import pytest

from bitreplay.config import EngineSettings
from bitreplay.ops import OperationRegistry
from bitreplay.session import Session
from bitreplay.verify import (
    ReplayVerifier,
    TolerancePolicy,
    VerificationStrategy,
    check_operation_determinism,
    count_mismatches,
    execution_checksum,
    hash_bits,
    mismatch_positions,
)

REGISTRY = OperationRegistry.default()
VERIFIER = ReplayVerifier(REGISTRY)

TRUST = VerificationStrategy.TRUST_AND_CHECK
RE_EXECUTE = VerificationStrategy.RE_EXECUTE


def record(lines=("NOT | XOR 11001100", "SHUFFLE", "ROL 3 [0:8]", "GRAY"), bits="1011001110001111", sid="v"):
    return Session(registry=REGISTRY, settings=EngineSettings()).run(list(lines), bits, sid)


def flip(bits, index):
    return bits[:index] + ("0" if bits[index] == "1" else "1") + bits[index + 1:]


def test_hash_bits_known_values():
    assert hash_bits("") == "00000000"
    assert hash_bits("0") == "00000030"
    assert hash_bits("1") == "00000031"
    assert hash_bits("01") == "00000601"
    assert len(hash_bits("1" * 1000)) == 8


def test_mismatch_helpers():
    assert mismatch_positions("1010", "1001") == [2, 3]
    assert mismatch_positions("10", "1011") == [2, 3]
    assert mismatch_positions("0000", "1111", limit=2) == [0, 1]
    assert count_mismatches("10", "1011") == 2
    assert count_mismatches("1010", "1010") == 0


def test_execution_checksum_is_stable():
    first = execution_checksum("1010", ["NOT:0000ABCD"], "0101")
    assert first == execution_checksum("1010", ["NOT:0000ABCD"], "0101")
    assert first != execution_checksum("1010", ["ROL:0000ABCD"], "0101")


@pytest.mark.parametrize("strategy", [TRUST, RE_EXECUTE])
def test_recorded_run_verifies(strategy):
    result = record()
    outcome = VERIFIER.verify_result(result, strategy)
    assert outcome.verified
    assert outcome.match_percentage == 100.0
    assert outcome.mismatch_count == 0
    assert outcome.expected_hash == outcome.actual_hash
    assert outcome.result_id == result.id
    assert len(outcome.step_verifications) == len(result.steps)
    assert all(s.verified for s in outcome.step_verifications)


def test_default_strategy_is_re_execute():
    assert VERIFIER.verify_result(record()).strategy is RE_EXECUTE


def test_wrong_final_bits_fail():
    result = record()
    wrong = flip(result.final_bits, 0)
    outcome = VERIFIER.verify(result.initial_bits, result.steps, wrong, RE_EXECUTE)
    assert not outcome.verified
    assert outcome.mismatch_count == 1
    assert outcome.mismatch_positions == (0,)
    assert outcome.failed_step is None


def test_tolerance_only_applies_to_trust_and_check():
    result = record()
    wrong = flip(result.final_bits, 3)

    exact = VERIFIER.verify(result.initial_bits, result.steps, wrong, TRUST)
    assert not exact.verified

    tolerated = VERIFIER.verify(
        result.initial_bits, result.steps, wrong, TRUST, TolerancePolicy.tolerate_percent(10)
    )
    assert tolerated.verified
    assert tolerated.warning is not None
    assert tolerated.mismatch_count == 1

    strict = VERIFIER.verify(
        result.initial_bits, result.steps, wrong, TRUST, TolerancePolicy.tolerate_percent(5)
    )
    assert not strict.verified

    with pytest.raises(ValueError):
        VERIFIER.verify(result.initial_bits, result.steps, wrong, RE_EXECUTE, TolerancePolicy.tolerate_percent(10))


def test_tolerance_never_covers_length_change():
    result = record()
    longer = result.final_bits + "0"
    outcome = VERIFIER.verify(
        result.initial_bits, result.steps, longer, TRUST, TolerancePolicy.tolerate_percent(50)
    )
    assert not outcome.verified
    assert outcome.length_delta == -1


def test_tolerance_policy_bounds():
    with pytest.raises(ValueError):
        TolerancePolicy.tolerate_percent(101)
    with pytest.raises(ValueError):
        TolerancePolicy.tolerate_percent(-1)
    assert TolerancePolicy.exact().is_exact
    assert TolerancePolicy.exact().describe() == "exact"
    assert not TolerancePolicy.tolerate_percent(1).accepts(1, 100, 0)
    assert TolerancePolicy.tolerate_percent(1.5).accepts(1, 100, 0)


def test_re_execute_stops_at_first_tampered_step():
    result = record()
    steps = list(result.steps)
    steps[1] = steps[1].model_copy(update={"full_after_bits": flip(steps[1].full_after_bits, 0)})

    outcome = VERIFIER.verify(result.initial_bits, steps, result.final_bits, RE_EXECUTE)
    assert not outcome.verified
    assert outcome.failed_step == 1
    assert outcome.failed_operation == steps[1].operation
    assert len(outcome.step_verifications) == 2
    assert not outcome.step_verifications[1].verified


def test_re_execute_reports_unknown_operation():
    result = record()
    steps = [result.steps[0].model_copy(update={"operation": "NOPE"})]
    outcome = VERIFIER.verify(result.initial_bits, steps, result.steps[0].full_after_bits, RE_EXECUTE)
    assert not outcome.verified
    assert outcome.failed_step == 0
    assert "NOPE" in outcome.error


def test_trust_and_check_reports_chain_break_as_warning():
    """Only the final buffer decides the verdict; a broken chain is a warning."""
    result = record()
    steps = list(result.steps)
    steps[2] = steps[2].model_copy(update={"full_before_bits": flip(steps[2].full_before_bits, 0)})

    outcome = VERIFIER.verify(result.initial_bits, steps, result.final_bits, TRUST)
    assert outcome.verified
    assert outcome.mismatch_count == 0
    assert outcome.failed_step is None
    assert outcome.error is None
    assert "chain breaks before step 2" in outcome.warning
    assert [c.step_index for c in outcome.step_verifications if not c.verified] == [2]
    assert len(outcome.step_verifications) == len(steps)


def test_trust_and_check_chain_break_with_wrong_final_fails():
    result = record(lines=("NOT", "ROL 1"), bits="1100")
    steps = list(result.steps)
    steps[1] = steps[1].model_copy(update={"full_before_bits": "1111"})

    outcome = VERIFIER.verify(result.initial_bits, steps, flip(result.final_bits, 0), TRUST)
    assert not outcome.verified
    assert outcome.mismatch_count == 1
    assert "chain" in outcome.warning


def test_trust_and_check_does_not_re_execute():
    """A forged operation is accepted as long as the recorded chain is intact."""
    result = record()
    steps = [s.model_copy(update={"operation": "NOPE"}) for s in result.steps]
    assert VERIFIER.verify(result.initial_bits, steps, result.final_bits, TRUST).verified


def test_invalid_input_bits_fail_without_raising():
    outcome = VERIFIER.verify("10x1", [], "1011")
    assert not outcome.verified
    assert outcome.error == "initial bits are not binary"


def test_empty_steps():
    assert VERIFIER.verify("1010", [], "1010").verified
    assert not VERIFIER.verify("1010", [], "1011").verified


def test_verify_many_preserves_order():
    inputs = ("10101010", "11110000", "10000001", "0011001100")
    results = [record(bits=bits, sid=f"r{i}") for i, bits in enumerate(inputs)]
    broken = results[2].model_copy(update={"final_bits": flip(results[2].final_bits, 0)})
    batch = [results[0], results[1], broken, results[3]]

    outcomes = VERIFIER.verify_many(batch, max_workers=3)
    assert [o.result_id for o in outcomes] == [r.id for r in batch]
    assert [o.verified for o in outcomes] == [True, True, False, True]
    assert VERIFIER.verify_many([]) == []


def test_to_dict_uses_camel_case():
    out = VERIFIER.verify_result(record()).to_dict()
    assert out["strategy"] == "re_execute"
    assert out["matchPercentage"] == 100.0
    assert out["stepVerifications"][0]["stepIndex"] == 0


def test_builtin_operations_are_deterministic():
    for op_id in ("NOT", "SHUFFLE", "LFSR", "GRAY", "CRC32", "ROL"):
        report = check_operation_determinism(REGISTRY, op_id, "1011001110001111", iterations=5)
        assert report.deterministic, op_id
        assert len(report.outputs) == 5
