"""
Shifts, rotations and byte/word reordering.
"""

from ...core.bits import chunks, fit
from ..params import get_bits, get_int
from .base import definer

op = definer("shift")


def _shift_left(bits, amount):
    if amount <= 0:
        return bits
    if amount >= len(bits):
        return "0" * len(bits)
    return bits[amount:] + "0" * amount


def _shift_right(bits, amount, fill="0"):
    if amount <= 0 or not bits:
        return bits
    if amount >= len(bits):
        return fill * len(bits)
    return fill * amount + bits[:len(bits) - amount]


def _rotate_left(bits, amount):
    if not bits:
        return bits
    amount %= len(bits)
    return bits[amount:] + bits[:amount]


def shl(bits, params):
    """Logical shift left, zero fill"""
    return _shift_left(bits, get_int(params, "count", 1))


def shr(bits, params):
    """Logical shift right, zero fill"""
    return _shift_right(bits, get_int(params, "count", 1))


def ashr(bits, params):
    """Arithmetic shift right, sign fill"""
    if not bits:
        return bits
    return _shift_right(bits, get_int(params, "count", 1), fill=bits[0])


def rol(bits, params):
    """Rotate left"""
    return _rotate_left(bits, get_int(params, "count", 1))


def ror(bits, params):
    """Rotate right"""
    if not bits:
        return bits
    return _rotate_left(bits, -get_int(params, "count", 1))


def rcl(bits, params):
    """Rotate left through a virtual carry bit"""
    amount = get_int(params, "count", 1) % (len(bits) + 1)
    return bits[amount:] + bits[:amount]


def rcr(bits, params):
    """Rotate right through a virtual carry bit"""
    amount = get_int(params, "count", 1) % (len(bits) + 1)
    if amount == 0:
        return bits
    return bits[len(bits) - amount:] + bits[:len(bits) - amount]


def funnel(bits, params):
    """Window of bits+value starting at count"""
    combined = bits + (get_bits(params, "value") or "0" * len(bits))
    if not combined:
        return ""
    start = get_int(params, "count", 0) % len(combined)
    return (combined + combined)[start:start + len(bits)]


def bswap(bits, params):
    """Reverse byte order"""
    return "".join(reversed(chunks(bits, 8)))


def wswap(bits, params):
    """Reverse 32-bit word order"""
    return "".join(reversed(chunks(bits, 32)))


def nibswap(bits, params):
    """Swap the nibbles of every byte"""
    out = "".join(byte[4:] + byte[:4] for byte in chunks(bits, 8, pad=True))
    return out[:len(bits)]


def reverse(bits, params):
    """Reverse bit order"""
    return bits[::-1]


def byterev(bits, params):
    """Reverse bit order inside every byte"""
    return "".join(byte[::-1] for byte in chunks(bits, 8))


def endian(bits, params):
    """Swap endianness of the byte-aligned buffer"""
    padded = fit(bits, -(-len(bits) // 8) * 8, keep="left")
    return "".join(reversed(chunks(padded, 8)))[:len(bits)]


_COUNT = ("count",)

DEFINITIONS = [
    op("SHL", shl, 1, _COUNT, defaults={"count": 1}),
    op("SHR", shr, 1, _COUNT, defaults={"count": 1}),
    op("ASHL", shl, 1, _COUNT, defaults={"count": 1}),
    op("ASL", shl, 1, _COUNT, defaults={"count": 1}),
    op("ASHR", ashr, 1, _COUNT, defaults={"count": 1}),
    op("ASR", ashr, 1, _COUNT, defaults={"count": 1}),
    op("ROL", rol, 1, _COUNT, defaults={"count": 1}),
    op("ROR", ror, 1, _COUNT, defaults={"count": 1}),
    op("RCL", rcl, 2, _COUNT, defaults={"count": 1}),
    op("RCR", rcr, 2, _COUNT, defaults={"count": 1}),
    op("FUNNEL", funnel, 3, ("count", "value"), defaults={"count": 0}),
    op("BSWAP", bswap, 2),
    op("WSWAP", wswap, 2),
    op("NIBSWAP", nibswap, 2),
    op("BITREV", reverse, 1),
    op("REVERSE", reverse, 1),
    op("BYTEREV", byterev, 2),
    op("ENDIAN", endian, 2),
]
