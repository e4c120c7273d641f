"""
Toy cipher building blocks. None of these are cryptographically secure.
"""

from ...core.bits import chunks, cycle_to, to_int
from ..params import get_bits, get_int
from ..registry import zeros
from ..resolver import lfsr_seed
from .base import byte_values, definer, numeric

op = definer("crypto")

SBOX_4 = (0xC, 0x5, 0x6, 0xB, 0x9, 0x0, 0xA, 0xD, 0x3, 0xE, 0xF, 0x8, 0x4, 0x7, 0x1, 0x2)
SHIFTROW_BLOCK = 128


def sbox(bits, params):
    """4-bit S-box substitution"""
    out = "".join(format(SBOX_4[int(n, 2)], "04b") for n in chunks(bits, 4, pad=True))
    return out[:len(bits)]


def _permutation_table(value, width):
    if value is None:
        return list(range(width - 1, -1, -1))
    table = [int(part) for part in str(value).split(",") if part.strip()]
    if not table:
        raise ValueError("permutation table is empty")
    return table


def permute(bits, params):
    """Reorder bits by a comma-separated index table (default: reverse)"""
    width = len(bits)
    if not width:
        return bits
    table = _permutation_table(params.get("value"), width)
    return "".join(bits[table[i % len(table)] % width] for i in range(width))


def feistel(bits, params):
    """One Feistel round keyed by mask"""
    half = len(bits) // 2
    left, right = bits[:half], bits[half:]
    if not left:
        return bits
    key = get_bits(params, "mask") or "10101010"
    f = numeric(to_int(right) ^ to_int(cycle_to(key, len(right))), len(right))
    new_right = numeric(to_int(left) ^ to_int(cycle_to(f, len(left))), len(left))
    return right + new_right


def lfsr(bits, params):
    """XOR with a 16-bit Fibonacci LFSR keystream seeded by seed"""
    state = get_int(params, "seed", 0xACE1) & 0xFFFF
    out = []
    for b in bits:
        bit = ((state >> 0) ^ (state >> 2) ^ (state >> 3) ^ (state >> 5)) & 1
        state = (state >> 1) | (bit << 15)
        out.append("1" if (b == "1") != bool(bit) else "0")
    return "".join(out)


def _gf_mul2(byte):
    shifted = (byte << 1) & 0xFF
    return shifted ^ 0x1B if byte & 0x80 else shifted


def mixcol(bits, params):
    """AES-style MixColumns over 32-bit columns"""
    out = []
    for column in chunks(bits, 32, pad=True):
        b0, b1, b2, b3 = byte_values(column)
        mixed = (
            _gf_mul2(b0) ^ _gf_mul2(b1) ^ b1 ^ b2 ^ b3,
            b0 ^ _gf_mul2(b1) ^ _gf_mul2(b2) ^ b2 ^ b3,
            b0 ^ b1 ^ _gf_mul2(b2) ^ _gf_mul2(b3) ^ b3,
            _gf_mul2(b0) ^ b0 ^ b1 ^ b2 ^ _gf_mul2(b3),
        )
        out.extend(format(m & 0xFF, "08b") for m in mixed)
    return "".join(out)[:len(bits)]


def shiftrow(bits, params):
    """AES-style ShiftRows on the first 128-bit block"""
    if len(bits) < SHIFTROW_BLOCK:
        return bits
    b = chunks(bits[:SHIFTROW_BLOCK], 8)
    rows = [
        b[0:4],
        b[5:8] + b[4:5],
        b[10:12] + b[8:10],
        b[15:16] + b[12:15],
    ]
    return "".join("".join(row) for row in rows) + bits[SHIFTROW_BLOCK:]


DEFINITIONS = [
    op("SBOX", sbox, 4),
    op("PERMUTE", permute, 4, ("value",), binary_params=frozenset()),
    op("FEISTEL", feistel, 5, ("mask",), requires_mask=True, default_mask=zeros),
    op("LFSR", lfsr, 4, ("seed",), requires_seed=True, default_seed=lfsr_seed),
    op("MIXCOL", mixcol, 1),
    op("SHIFTROW", shiftrow, 1),
]
