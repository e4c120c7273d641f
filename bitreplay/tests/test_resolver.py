"""
Tests for the parameter resolver.

Critical: the same operation, buffer and caller params must always resolve
to equal params, and the params used must be the params returned.
"""

from bitreplay.core.canonical import canonical_json_str
from bitreplay.ops import OperationRegistry, content_seed, lfsr_seed
from bitreplay.ops.resolver import LFSR_DEFAULT_SEED

REGISTRY = OperationRegistry.default()


def test_resolve_determinism_100_runs():
    """Resolving 100 times must produce identical params for mask and seed ops."""
    bits = "1101001110001011"
    for op_id in ("AND", "OR", "XOR", "NAND", "MUX", "SHUFFLE", "LFSR", "FEISTEL"):
        results = {canonical_json_str(REGISTRY.resolve(op_id, bits, {})) for _ in range(100)}
        assert len(results) == 1, op_id


def test_identity_default_masks():
    assert REGISTRY.resolve("AND", "1010", {}) == {"mask": "1111"}
    assert REGISTRY.resolve("OR", "1010", {}) == {"mask": "0000"}
    assert REGISTRY.resolve("XOR", "1010", {}) == {"mask": "0000"}


def test_identity_defaults_leave_buffer_unchanged():
    bits = "1100101001"
    for op_id in ("AND", "OR", "XOR"):
        assert REGISTRY.execute(op_id, bits, {}).bits == bits


def test_caller_params_are_not_mutated():
    caller = {"mask": "11", "value": "11", "count": 3}
    REGISTRY.resolve("XOR", "1010", caller)
    assert caller == {"mask": "11", "value": "11", "count": 3}


def test_unused_params_are_dropped():
    """Persisted params describe exactly what the operation read."""
    assert REGISTRY.resolve("XOR", "1010", {"mask": "11", "value": "11"}) == {"mask": "11"}
    assert REGISTRY.resolve("NOT", "1010", {"mask": "11", "count": 2}) == {}


def test_content_seed():
    assert content_seed("0000") == 1
    assert content_seed("1001") == 0 + 3
    assert content_seed("0110") == 1 + 2


def test_default_seed_is_content_derived():
    assert REGISTRY.resolve("SHUFFLE", "0110", {}) == {"seed": 3}
    assert REGISTRY.resolve("SHUFFLE", "0000", {}) == {"seed": 1}


def test_count_is_alias_for_seed():
    assert REGISTRY.resolve("SHUFFLE", "0110", {"count": 7}) == {"seed": 7}
    # An explicit seed wins over count
    assert REGISTRY.resolve("SHUFFLE", "0110", {"count": 7, "seed": 9}) == {"seed": 9}


def test_lfsr_seed_folds_to_16_bits():
    bits = "1" * 400  # index sum far above 0xFFFF
    assert lfsr_seed(bits) == content_seed(bits) & 0xFFFF
    assert 0 < lfsr_seed(bits) <= 0xFFFF
    assert REGISTRY.resolve("LFSR", bits, {})["seed"] == lfsr_seed(bits)


def test_lfsr_zero_fold_falls_back():
    # ones at indices 1 and 65535 sum to 0x10000, which folds to zero
    bits = ["0"] * 65536
    bits[1] = "1"
    bits[65535] = "1"
    buffer = "".join(bits)
    assert content_seed(buffer) == 65536
    assert lfsr_seed(buffer) == LFSR_DEFAULT_SEED


def test_decimal_value_reinterpreted_as_count():
    """"ROL 10" parses 10 as mask/value; number-only ops read it as a count."""
    assert REGISTRY.resolve("ROL", "10110001", {"mask": "10", "value": "10"}) == {"count": 10}


def test_static_defaults_materialize():
    assert REGISTRY.resolve("SHL", "1010", {}) == {"count": 1}
    assert REGISTRY.resolve("SHL", "1010", {"count": "3"}) == {"count": 3}
