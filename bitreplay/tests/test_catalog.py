"""
Tests for built-in operations: concrete values and inverse pairs.
"""

import pytest

from bitreplay.core.errors import OperationExecutionError
from bitreplay.ops import OperationRegistry

REGISTRY = OperationRegistry.default()


def run(op_id, buffer, **params):
    return REGISTRY.execute(op_id, buffer, params).bits


def test_logic_gates():
    assert run("NOT", "10101010") == "01010101"
    assert run("AND", "11111111", mask="11110000") == "11110000"
    assert run("OR", "00000000", mask="1010") == "10101010"  # mask cycles to width
    assert run("XOR", "1111", mask="10") == "0101"


def test_shifts_and_rotations():
    assert run("SHL", "1011", count=2) == "1100"
    assert run("SHR", "1011", count=1) == "0101"
    assert run("ROL", "10000000", count=1) == "00000001"
    assert run("ROR", "00000001", count=1) == "10000000"
    assert run("ROL", "1011", count=0) == "1011"


def test_insert_grows_buffer():
    assert run("INSERT", "0000", position=2, bits="11") == "001100"


def test_append_and_truncate_are_not_length_preserving():
    assert len(run("APPEND", "1010", bits="11")) == 6
    assert REGISTRY.lookup("APPEND").preserves_length is False


def test_exec_runs_user_script():
    assert run("EXEC", "1100", code="bits[::-1]") == "0011"


def test_exec_without_code_fails():
    with pytest.raises(OperationExecutionError):
        REGISTRY.execute("EXEC", "1100", {})


def test_checksums_keep_buffer_width():
    for op_id in ("CHECKSUM8", "CRC8", "CRC16", "CRC32", "FLETCHER", "ADLER", "LUHN"):
        out = run(op_id, "1100101011110000")
        assert len(out) == 16, op_id


def test_operations_handle_empty_buffer():
    for op_id in ("NOT", "AND", "XOR", "ROL", "SHL", "GRAY", "DIFF", "SHUFFLE", "CRC32"):
        assert REGISTRY.execute(op_id, "", {}).bits == "", op_id


@pytest.mark.parametrize("bits", ["1", "10", "1101001110", "0" * 31 + "1", "1100101001011101" * 4])
def test_shuffle_unshuffle_round_trip(bits):
    seed = REGISTRY.resolve("SHUFFLE", bits, {})["seed"]
    shuffled = run("SHUFFLE", bits, seed=seed)
    assert run("UNSHUFFLE", shuffled, seed=seed) == bits


def test_shuffle_default_seed_is_reproducible():
    bits = "1101001110001011"
    outs = {run("SHUFFLE", bits) for _ in range(20)}
    assert len(outs) == 1


def test_diff_dediff_round_trip():
    bits = "1101001110001011"
    assert run("DEDIFF", run("DIFF", bits)) == bits


def test_rotate_round_trip():
    bits = "1101001110001011"
    for n in (0, 1, 5, 16, 37):
        assert run("ROR", run("ROL", bits, count=n), count=n) == bits


def test_encoding_inverse_pairs():
    bits = "1101001110001011"
    assert run("GRAY", run("GRAY", bits, direction="encode"), direction="decode") == bits
    assert run("DENRZI", run("NRZI", bits)) == bits
    assert run("IMTF", run("MTF", bits)) == bits


def test_lfsr_is_an_involution_for_a_fixed_seed():
    bits = "1101001110001011"
    once = run("LFSR", bits, seed=0xBEEF)
    assert run("LFSR", once, seed=0xBEEF) == bits
