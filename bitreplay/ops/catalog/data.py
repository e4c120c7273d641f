"""
Data movement: fills, splices, halves and channel splitting.
"""

from ...core.bits import cycle_to, to_int
from ..params import get_bits, get_int
from .base import definer, numeric

op = definer("data")


def copy(bits, params):
    """Identity copy"""
    return bits


def fill(bits, params):
    """Fill with value repeated"""
    return cycle_to(get_bits(params, "value") or "0", len(bits))


def extend(bits, params):
    """Append value, keeping the original width"""
    return (bits + (get_bits(params, "value") or "0" * 8))[:len(bits)]


def concat(bits, params):
    """Concatenate value, keeping the original width"""
    return (bits + (get_bits(params, "value") or ""))[:len(bits)]


def splice(bits, params):
    """Insert value at position, keeping the original width"""
    pos = max(0, get_int(params, "position", 0))
    return (bits[:pos] + (get_bits(params, "value") or "") + bits[pos:])[:len(bits)]


def split(bits, params):
    """Keep bits before position, zero-filled"""
    pos = get_int(params, "position", len(bits) // 2)
    return bits[:max(0, pos)].ljust(len(bits), "0")


def merge(bits, params):
    """XOR-merge with value"""
    width = len(bits)
    if not width:
        return ""
    other = cycle_to(get_bits(params, "value") or "0", width)
    return numeric(to_int(bits) ^ to_int(other), width)


def prefix(bits, params):
    """Prepend value, keeping the original width"""
    return ((get_bits(params, "value") or "0") + bits)[:len(bits)]


def suffix(bits, params):
    """Append value and keep the rightmost width bits"""
    if not bits:
        return bits
    joined = bits + (get_bits(params, "value") or "0")
    return joined[len(joined) - len(bits):]


def repeat(bits, params):
    """Repeat the leading 1/count chunk; short inputs grow to one byte"""
    count = max(1, get_int(params, "count", 2))
    target = max(8, len(bits))
    padded = bits.ljust(target, "0")
    chunk = padded[:max(1, target // count)]
    return cycle_to(chunk, target)


def mirror(bits, params):
    """Reflect the first half onto the second half"""
    half = len(bits) // 2
    middle = bits[half] if len(bits) % 2 else ""
    return bits[:half] + middle + bits[:half][::-1]


def scatter(bits, params):
    """Spread bits apart with zero gaps"""
    return "".join(b + "0" for b in bits)[:len(bits)]


def gather(bits, params):
    """Compact every other bit"""
    return bits[0::2].ljust(len(bits), "0")


def demux(bits, params):
    """Select one channel of count interleaved channels"""
    channels = max(1, get_int(params, "count", 2))
    channel = get_int(params, "position", 0) % channels
    return bits[channel::channels].ljust(len(bits), "0")


_VALUE = ("value",)

DEFINITIONS = [
    op("COPY", copy, 1),
    op("FILL", fill, 2, _VALUE),
    op("EXTEND", extend, 2, _VALUE),
    op("CONCAT", concat, 2, _VALUE),
    op("SPLICE", splice, 3, ("position", "value")),
    op("SPLIT", split, 2, ("position",)),
    op("MERGE", merge, 3, _VALUE),
    op("PREFIX", prefix, 1, _VALUE),
    op("SUFFIX", suffix, 1, _VALUE),
    op("REPEAT", repeat, 2, ("count",), defaults={"count": 2}, preserves_length=False),
    op("MIRROR", mirror, 2),
    op("SCATTER", scatter, 3),
    op("GATHER", gather, 3),
    op("DEMUX", demux, 1, ("count", "position"), defaults={"count": 2}),
]
