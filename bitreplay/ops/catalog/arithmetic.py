"""
Unsigned fixed-width arithmetic.

Results wrap modulo 2**width unless the operation saturates.
"""

from ...core.bits import invert, to_int
from ..params import get_bits
from .base import definer, numeric

op = definer("arithmetic")


def _operand(params, default):
    return to_int(get_bits(params, "value") or default)


def _binary(fn, default):
    def apply(bits, params):
        return numeric(fn(to_int(bits), _operand(params, default), len(bits)), len(bits))
    apply.__doc__ = fn.__doc__
    return apply


def _add(a, b, width):
    """Add value (wraps)"""
    return a + b


def _sub(a, b, width):
    """Subtract value (wraps)"""
    return a - b


def _mul(a, b, width):
    """Multiply by value (wraps)"""
    return a * b


def _div(a, b, width):
    """Integer divide by value; division by zero leaves the buffer unchanged"""
    return a // b if b else a


def _mod(a, b, width):
    """Remainder by value; zero divisor leaves the buffer unchanged"""
    return a % b if b else a


def _sat_add(a, b, width):
    """Add value, saturating at all ones"""
    return min(a + b, (1 << width) - 1)


def _sat_sub(a, b, width):
    """Subtract value, saturating at zero"""
    return max(0, a - b)


def inc(bits, params):
    """Increment by one (wraps)"""
    return numeric(to_int(bits) + 1, len(bits))


def dec(bits, params):
    """Decrement by one (wraps)"""
    return numeric(to_int(bits) - 1, len(bits))


def neg(bits, params):
    """Two's complement negation"""
    return numeric(-to_int(bits), len(bits))


def abs_(bits, params):
    """Two's complement absolute value"""
    if not bits or bits[0] == "0":
        return bits
    return numeric(to_int(invert(bits)) + 1, len(bits))


def popcnt(bits, params):
    """Population count"""
    return numeric(bits.count("1"), len(bits))


def clz(bits, params):
    """Count leading zeros"""
    return numeric(len(bits) - len(bits.lstrip("0")), len(bits))


def ctz(bits, params):
    """Count trailing zeros"""
    return numeric(len(bits) - len(bits.rstrip("0")), len(bits))


def clamp(bits, params):
    """Clamp between value (min) and mask (max)"""
    width = len(bits)
    low = to_int(get_bits(params, "value") or "0")
    mask = get_bits(params, "mask")
    high = to_int(mask) if mask else (1 << width) - 1
    return numeric(max(low, min(high, to_int(bits))), width)


def wrap(bits, params):
    """Reduce modulo value"""
    width = len(bits)
    modulo = _operand(params, "1" * width) or 256
    return numeric(to_int(bits) % modulo, width)


_VALUE = ("value",)

DEFINITIONS = [
    op("ADD", _binary(_add, "1"), 3, _VALUE),
    op("SUB", _binary(_sub, "1"), 3, _VALUE),
    op("MUL", _binary(_mul, "10"), 5, _VALUE),
    op("DIV", _binary(_div, "10"), 5, _VALUE),
    op("MOD", _binary(_mod, "10"), 4, _VALUE),
    op("SAT_ADD", _binary(_sat_add, "1"), 3, _VALUE),
    op("SAT_SUB", _binary(_sat_sub, "1"), 3, _VALUE),
    op("ABS", abs_, 2),
    op("INC", inc, 2),
    op("DEC", dec, 2),
    op("NEG", neg, 2),
    op("POPCNT", popcnt, 2),
    op("CLZ", clz, 2),
    op("CTZ", ctz, 2),
    op("CLAMP", clamp, 2, ("mask", "value")),
    op("WRAP", wrap, 2, _VALUE),
]
