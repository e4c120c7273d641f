"""
Line codes and reversible encodings.

Encoders that would expand the buffer (Manchester, RLL, Hamming) are
truncated to the input width so they stay length-preserving.
"""

from ...core.bits import chunks, from_int, to_int
from ..params import get_bits
from .base import byte_values, definer, numeric

op = definer("encoding")

BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
BWT_WINDOW = 64


def _gray_encode(bits):
    if not bits:
        return bits
    return bits[0] + "".join("0" if a == b else "1" for a, b in zip(bits, bits[1:]))


def _gray_decode(bits):
    out = []
    prev = "0"
    for b in bits:
        prev = prev if b == "0" else ("1" if prev == "0" else "0")
        out.append(prev)
    return "".join(out)


def gray(bits, params):
    """Binary <-> Gray code (direction=encode|decode)"""
    if get_bits(params, "direction") == "decode":
        return _gray_decode(bits)
    return _gray_encode(bits)


def diff(bits, params):
    """Differential encoding: first bit, then transitions"""
    return _gray_encode(bits)


def dediff(bits, params):
    """Differential decoding, inverse of DIFF"""
    return _gray_decode(bits)


def manchester(bits, params):
    """Manchester code (1 -> 10, 0 -> 01)"""
    return "".join("10" if b == "1" else "01" for b in bits)[:len(bits)]


def demanchester(bits, params):
    """Manchester decode; invalid pairs decode to 0"""
    decoded = "".join("1" if bits[i:i + 2] == "10" else "0" for i in range(0, len(bits) - 1, 2))
    return decoded.ljust(len(bits), "0")


def nrzi(bits, params):
    """NRZI: a 1 toggles the line level"""
    out = []
    level = "0"
    for b in bits:
        if b == "1":
            level = "1" if level == "0" else "0"
        out.append(level)
    return "".join(out)


def denrzi(bits, params):
    """NRZI decode"""
    out = []
    prev = "0"
    for b in bits:
        out.append("1" if b != prev else "0")
        prev = b
    return "".join(out)


def rle(bits, params):
    """Run-length code: 8-bit run length + bit per run, cut to the input width"""
    if not bits:
        return ""
    out = []
    current, run = bits[0], 1
    for b in bits[1:]:
        if b == current and run < 255:
            run += 1
            continue
        out.append(format(run, "08b") + current)
        current, run = b, 1
    out.append(format(run, "08b") + current)
    return "".join(out)[:len(bits)] or bits


def derle(bits, params):
    """Expand 9-bit run-length records"""
    out = []
    for i in range(0, len(bits) - 8, 9):
        run = int(bits[i:i + 8], 2)
        out.append(bits[i + 8] * run)
    return "".join(out)[:len(bits)] or bits


def delta(bits, params):
    """Byte-wise delta from the previous byte"""
    if len(bits) < 8:
        return bits
    values = byte_values(bits)
    deltas = [values[0]] + [(cur - prev) % 256 for prev, cur in zip(values, values[1:])]
    return "".join(format(v, "08b") for v in deltas)[:len(bits)]


def dedelta(bits, params):
    """Inverse of DELTA"""
    if len(bits) < 8:
        return bits
    values = byte_values(bits)
    acc = [values[0]]
    for d in values[1:]:
        acc.append((acc[-1] + d) % 256)
    return "".join(format(v, "08b") for v in acc)[:len(bits)]


def zigzag(bits, params):
    """Map two's complement to zigzag order"""
    width = len(bits)
    if not width:
        return ""
    value = to_int(bits)
    if bits[0] == "1":
        value -= 1 << width
    return numeric(value * 2 if value >= 0 else -value * 2 - 1, width)


def dezigzag(bits, params):
    """Inverse of ZIGZAG"""
    value = to_int(bits)
    return from_int((value >> 1) ^ -(value & 1), len(bits))


def rll(bits, params):
    """Simplified run-length-limited code: every bit doubled"""
    return "".join(b + b for b in bits)[:len(bits)]


def hamming_enc(bits, params):
    """Hamming(7,4) per nibble"""
    out = []
    for nibble in chunks(bits, 4, pad=True):
        d = [int(c) for c in nibble]
        p1 = d[0] ^ d[1] ^ d[3]
        p2 = d[0] ^ d[2] ^ d[3]
        p3 = d[1] ^ d[2] ^ d[3]
        out.append(f"{p1}{p2}{d[0]}{p3}{d[1]}{d[2]}{d[3]}")
    return "".join(out)[:len(bits)]


def base64_enc(bits, params):
    """Base64 characters of each 6-bit group as 8-bit codes"""
    out = "".join(
        format(ord(BASE64_ALPHABET[int(group, 2)]), "08b") for group in chunks(bits, 6, pad=True)
    )
    return out[:len(bits)]


def mtf(bits, params):
    """Move-to-front over the binary alphabet"""
    alphabet = ["0", "1"]
    out = []
    for b in bits:
        idx = alphabet.index(b)
        out.append(str(idx))
        if idx:
            alphabet.insert(0, alphabet.pop(idx))
    return "".join(out)


def imtf(bits, params):
    """Inverse move-to-front"""
    alphabet = ["0", "1"]
    out = []
    for b in bits:
        idx = int(b)
        out.append(alphabet[idx])
        if idx:
            alphabet.insert(0, alphabet.pop(idx))
    return "".join(out)


def bwt(bits, params):
    """Burrows-Wheeler transform of the first 64 bits"""
    n = min(len(bits), BWT_WINDOW)
    segment = bits[:n]
    rotations = sorted(segment[i:] + segment[:i] for i in range(n))
    return "".join(rot[-1] for rot in rotations) + bits[n:]


def ibwt(bits, params):
    """Inverse Burrows-Wheeler walk over the first 64 bits"""
    n = min(len(bits), BWT_WINDOW)
    table = sorted(((c, i) for i, c in enumerate(bits[:n])), key=lambda t: (t[0], t[1]))
    out = []
    idx = 0
    for _ in range(n):
        c, idx = table[idx]
        out.append(c)
    return "".join(reversed(out)) + bits[n:]


DEFINITIONS = [
    op("GRAY", gray, 2, ("direction",)),
    op("MANCHESTER", manchester, 2),
    op("DEMANCHESTER", demanchester, 2),
    op("NRZI", nrzi, 2),
    op("DENRZI", denrzi, 2),
    op("DIFF", diff, 2),
    op("DEDIFF", dediff, 2),
    op("RLE", rle, 3, preserves_length=False),
    op("DERLE", derle, 3, preserves_length=False),
    op("DELTA", delta, 3),
    op("DEDELTA", dedelta, 3),
    op("ZIGZAG", zigzag, 2),
    op("DEZIGZAG", dezigzag, 2),
    op("RLL", rll, 3),
    op("HAMMING_ENC", hamming_enc, 4),
    op("BASE64_ENC", base64_enc, 3),
    op("MTF", mtf, 3),
    op("IMTF", imtf, 3),
    op("BWT", bwt, 8),
    op("IBWT", ibwt, 1),
]
