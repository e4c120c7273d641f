"""
Tests for the UserScript sandbox used by EXEC and code-based custom operations.
"""

import pytest

from bitreplay.core.errors import ScriptError
from bitreplay.ops.script import UserScript, compile_script, normalize_source


def test_invert_with_comprehension():
    script = UserScript("''.join('1' if b == '0' else '0' for b in bits)")
    assert script.run("1100") == "0011"


def test_helpers_are_available():
    assert UserScript("rotl(bits, 1)").run("1000") == "0001"
    assert UserScript("rotr(bits, 1)").run("1000") == "0100"
    assert UserScript("xor(bits, '1')").run("1010") == "0101"
    assert UserScript("invert(bits)").run("1010") == "0101"
    assert UserScript("reversed(bits)").run("1100") == "0011"


def test_params_are_readable():
    assert UserScript("bits + params['tail']").run("10", {"tail": "01"}) == "1001"


def test_return_prefix_and_semicolons_are_tolerated():
    assert normalize_source("return bits[::-1];;") == "bits[::-1]"
    assert UserScript("return bits[::-1];").run("100") == "001"


def test_result_must_be_a_bit_string():
    with pytest.raises(ScriptError):
        UserScript("len(bits)").run("1010")
    with pytest.raises(ScriptError):
        UserScript("'abc'").run("1010")


@pytest.mark.parametrize("source", [
    "__import__('os')",
    "bits.__class__",
    "(lambda: bits)()",
    "open('x')",
    "bits.upper()",
    "int(bits, base=2)",
    "",
])
def test_disallowed_scripts_are_rejected(source):
    with pytest.raises(ScriptError):
        UserScript(source).run("1010")


def test_assignment_is_a_syntax_error():
    with pytest.raises(ScriptError):
        compile_script("bits = '1'")


def test_comprehension_cannot_rebind_bits():
    with pytest.raises(ScriptError):
        UserScript("''.join(bits for bits in '01')").run("1")


def test_step_budget_is_enforced():
    script = UserScript("''.join(a for a in bits for b in bits)", step_budget=1000)
    with pytest.raises(ScriptError, match="step budget"):
        script.run("1" * 100)


def test_output_size_is_enforced():
    with pytest.raises(ScriptError):
        UserScript("bits * 1000", max_output=64).run("1010")
    with pytest.raises(ScriptError):
        UserScript("bits.zfill(100000)", max_output=64).run("1010")


def test_scripts_are_deterministic():
    script = UserScript("''.join(str((i * 7 + int(bits[i])) % 2) for i in range(len(bits)))")
    first = script.run("110010101")
    for _ in range(20):
        assert script.run("110010101") == first
