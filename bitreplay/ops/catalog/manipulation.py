"""
Bit manipulation: insertion, deletion, field access, deposit/extract,
interleaving, seeded shuffles and padding.
"""

from typing import List, Tuple

from ...core.bits import chunks, cycle_to
from ..params import get_bits, get_int
from ..registry import ones
from ..resolver import content_seed
from .base import definer

op = definer("manipulation")
pack = definer("packing")

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MODULUS_MASK = 0x7FFFFFFF


def _clamp(value, low, high):
    return max(low, min(high, value))


def insert(bits, params):
    """Insert `bits` at position"""
    pos = _clamp(get_int(params, "position", 0), 0, len(bits))
    return bits[:pos] + (get_bits(params, "bits") or "") + bits[pos:]


def delete(bits, params):
    """Delete count bits starting at start"""
    start = max(0, get_int(params, "start", 0))
    end = min(len(bits), start + get_int(params, "count", 1))
    if start >= end:
        return bits
    return bits[:start] + bits[end:]


def replace(bits, params):
    """Overwrite bits starting at start"""
    start = max(0, get_int(params, "start", 0))
    if start >= len(bits):
        return bits
    patch = (get_bits(params, "bits") or "")[:len(bits) - start]
    return bits[:start] + patch + bits[start + len(patch):]


def move(bits, params):
    """Move count bits from source to dest"""
    src = get_int(params, "source", 0)
    end = src + get_int(params, "count", 1)
    if src < 0 or end > len(bits) or src >= end:
        return bits
    moved = bits[src:end]
    rest = bits[:src] + bits[end:]
    dest = _clamp(get_int(params, "dest", 0), 0, len(rest))
    return rest[:dest] + moved + rest[dest:]


def truncate(bits, params):
    """Keep the first count bits"""
    return bits[:max(0, get_int(params, "count", len(bits)))]


def append(bits, params):
    """Append `bits` to the end"""
    return bits + (get_bits(params, "bits") or "")


def _set_at(value):
    def apply(bits, params):
        pos = get_int(params, "position", 0)
        if not 0 <= pos < len(bits):
            return bits
        new = value if value != "toggle" else ("0" if bits[pos] == "1" else "1")
        return bits[:pos] + new + bits[pos + 1:]
    return apply


bset = _set_at("1")
bset.__doc__ = "Set the bit at position"
bclr = _set_at("0")
bclr.__doc__ = "Clear the bit at position"
btog = _set_at("toggle")
btog.__doc__ = "Toggle the bit at position"


def btest(bits, params):
    """Read-only bit test; the buffer is unchanged"""
    return bits


def bextract(bits, params):
    """Extract count bits from start, zero-filled to the buffer width"""
    start = max(0, get_int(params, "start", 0))
    field = bits[start:start + get_int(params, "count", 8)]
    return field.ljust(len(bits), "0")


def binsert(bits, params):
    """Write value as a field at start"""
    start = max(0, get_int(params, "start", 0))
    value = get_bits(params, "value") or "0"
    return (bits[:start] + value + bits[start + len(value):])[:len(bits)]


def deposit(bits, params):
    """Scatter low bits into the positions set in mask"""
    mask = get_bits(params, "mask") or ones(len(bits))
    out: List[str] = []
    src = 0
    for m in mask:
        if len(out) >= len(bits):
            break
        if m == "1":
            out.append(bits[src] if src < len(bits) else "0")
            src += 1
        else:
            out.append("0")
    return "".join(out).ljust(len(bits), "0")


def extract(bits, params):
    """Gather the bits selected by mask to the front"""
    if not bits:
        return bits
    mask = cycle_to(get_bits(params, "mask") or ones(len(bits)), len(bits))
    picked = "".join(b for b, m in zip(bits, mask) if m == "1")
    return picked.ljust(len(bits), "0")


def interleave(bits, params):
    """Interleave bits with value, truncated to the buffer width"""
    other = get_bits(params, "value") or ""
    out = "".join(b + (other[i] if i < len(other) else "0") for i, b in enumerate(bits))
    return out[:len(bits)]


def deinterleave(bits, params):
    """Even-indexed bits followed by odd-indexed bits"""
    return bits[0::2] + bits[1::2]


def lcg_swaps(length: int, seed: int) -> List[Tuple[int, int]]:
    """Fisher-Yates swap schedule driven by a 31-bit LCG."""
    rng = seed
    swaps = []
    for i in range(length - 1, 0, -1):
        rng = (rng * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MODULUS_MASK
        swaps.append((i, rng % (i + 1)))
    return swaps


def shuffle(bits, params):
    """Seeded Fisher-Yates permutation"""
    arr = list(bits)
    for i, j in lcg_swaps(len(arr), get_int(params, "seed", 1)):
        arr[i], arr[j] = arr[j], arr[i]
    return "".join(arr)


def unshuffle(bits, params):
    """Inverse of SHUFFLE for the same seed"""
    arr = list(bits)
    for i, j in reversed(lcg_swaps(len(arr), get_int(params, "seed", 1))):
        arr[i], arr[j] = arr[j], arr[i]
    return "".join(arr)


def swap(bits, params):
    """Swap [start, end) with the following field of equal size"""
    start = get_int(params, "start", 0)
    end = get_int(params, "end", len(bits) // 2)
    end2 = min(end + (end - start), len(bits))
    if start >= end or end >= end2 or start < 0:
        return bits
    return bits[:start] + bits[end:end2] + bits[start:end] + bits[end2:]


def _fill(params):
    return "1" if get_bits(params, "value") == "1" else "0"


def pad(bits, params):
    """Pad on the right to a multiple of alignment"""
    alignment = max(1, get_int(params, "alignment", 8))
    remainder = len(bits) % alignment
    if remainder == 0:
        return bits
    return bits + _fill(params) * (alignment - remainder)


def pad_left(bits, params):
    """Pad on the left to count bits"""
    return bits.rjust(get_int(params, "count", len(bits) + 8), _fill(params))


def pad_right(bits, params):
    """Pad on the right to count bits"""
    return bits.ljust(get_int(params, "count", len(bits) + 8), _fill(params))


def pack_bytes(bits, params):
    """Re-render every byte as a right-aligned 8-bit value"""
    return "".join(format(int(chunk, 2), "08b") for chunk in chunks(bits, 8))[:len(bits)]


def unpack(bits, params):
    """Identity counterpart of PACK"""
    return bits


DEFINITIONS = [
    op("INSERT", insert, 2, ("position", "bits"), preserves_length=False),
    op("DELETE", delete, 2, ("start", "count"), preserves_length=False),
    op("REPLACE", replace, 2, ("start", "bits")),
    op("MOVE", move, 3, ("source", "count", "dest")),
    op("TRUNCATE", truncate, 1, ("count",), preserves_length=False),
    op("APPEND", append, 1, ("bits",), preserves_length=False),
    op("BSET", bset, 1, ("position",)),
    op("BCLR", bclr, 1, ("position",)),
    op("BTOG", btog, 1, ("position",)),
    op("BTEST", btest, 1, ("position",)),
    op("BEXTRACT", bextract, 2, ("start", "count"), defaults={"count": 8}),
    op("BEXTR", bextract, 1, ("start", "count"), defaults={"count": 8}),
    op("BINSERT", binsert, 2, ("start", "value")),
    op("BDEPOSIT", deposit, 3, ("mask",)),
    op("BGATHER", extract, 3, ("mask",)),
    op("PDEP", deposit, 1, ("mask",), requires_mask=True, default_mask=ones),
    op("PEXT", extract, 1, ("mask",), requires_mask=True, default_mask=ones),
    op("INTERLEAVE", interleave, 3, ("value",)),
    op("DEINTERLEAVE", deinterleave, 3),
    op("SHUFFLE", shuffle, 4, ("seed",), requires_seed=True, default_seed=content_seed),
    op("UNSHUFFLE", unshuffle, 4, ("seed",), requires_seed=True, default_seed=content_seed),
    op("SWAP", swap, 2, ("start", "end")),
    pack("PAD", pad, 1, ("alignment", "value"), defaults={"alignment": 8}, preserves_length=False),
    pack("PAD_LEFT", pad_left, 1, ("count", "value"), preserves_length=False),
    pack("PAD_RIGHT", pad_right, 1, ("count", "value"), preserves_length=False),
    pack("PACK", pack_bytes, 2),
    pack("UNPACK", unpack, 2),
]
