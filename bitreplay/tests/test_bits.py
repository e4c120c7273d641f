"""
Tests for bit buffer primitives and BitRange scoping.
"""

import pytest

from bitreplay.core.bits import (
    BitRange,
    chunks,
    cycle_to,
    fit,
    from_int,
    invert,
    is_bits,
    to_int,
    validate_bits,
)
from bitreplay.core.errors import InvalidBitsError, RangeError


def test_is_bits_accepts_empty_and_binary():
    assert is_bits("")
    assert is_bits("0101")
    assert not is_bits("0102")
    assert not is_bits(101)


def test_validate_bits_raises_on_garbage():
    with pytest.raises(InvalidBitsError):
        validate_bits("10a1")


def test_int_conversions():
    assert to_int("") == 0
    assert to_int("1010") == 10
    assert from_int(10, 8) == "00001010"
    assert from_int(0x1FF, 8) == "11111111"  # keeps low-order bits
    assert from_int(5, 0) == ""


def test_fit_keeps_requested_end():
    assert fit("110011", 4) == "0011"
    assert fit("110011", 4, keep="left") == "1100"
    assert fit("11", 4) == "0011"
    assert fit("11", 4, keep="left") == "1100"
    assert fit("11", 0) == ""


def test_cycle_and_chunks():
    assert cycle_to("10", 5) == "10101"
    assert chunks("1010101", 3) == ["101", "010", "1"]
    assert chunks("1010101", 3, pad=True) == ["101", "010", "100"]
    assert invert("1100") == "0011"


def test_bit_range_extract_and_splice():
    r = BitRange(2, 5)
    assert r.length == 3
    assert r.extract("11001100") == "001"
    assert r.splice("11001100", "111") == "11111100"
    assert BitRange.from_dict(r.to_dict()) == r
    assert BitRange.from_dict(None) is None


def test_bit_range_bounds_are_checked():
    with pytest.raises(RangeError):
        BitRange(4, 2).check(8)
    with pytest.raises(RangeError):
        BitRange(0, 9).extract("11110000")
    # Empty range at the end is valid
    assert BitRange(8, 8).extract("11110000") == ""
