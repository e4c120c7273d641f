"""
Checksums, rendered into the low-order end of a buffer of the input width.
"""

import zlib

from ...core.bits import chunks
from .base import byte_values, definer, numeric, to_bytes

op = definer("checksum")


def _from_32(value, width):
    """Leading `width` bits of the 32-bit value, left-padded when narrower."""
    return format(value & 0xFFFFFFFF, "032b")[:width].zfill(width)


def checksum8(bits, params):
    """8-bit additive checksum"""
    return numeric(sum(byte_values(bits)) & 0xFF, len(bits))


def crc8(bits, params):
    """CRC-8, polynomial 0x07"""
    crc = 0
    for byte in byte_values(bits):
        crc ^= byte
        for _ in range(8):
            crc = ((crc << 1) ^ 0x07) & 0xFF if crc & 0x80 else (crc << 1) & 0xFF
    return numeric(crc, len(bits))


def crc16(bits, params):
    """CRC-16/CCITT-FALSE"""
    crc = 0xFFFF
    for byte in byte_values(bits):
        crc ^= byte << 8
        for _ in range(8):
            crc = ((crc << 1) ^ 0x1021) & 0xFFFF if crc & 0x8000 else (crc << 1) & 0xFFFF
    return numeric(crc, len(bits))


def crc32(bits, params):
    """CRC-32 (IEEE)"""
    return _from_32(zlib.crc32(to_bytes(bits)), len(bits))


def fletcher(bits, params):
    """Fletcher-16"""
    sum1 = sum2 = 0
    for byte in byte_values(bits):
        sum1 = (sum1 + byte) % 255
        sum2 = (sum2 + sum1) % 255
    return numeric((sum2 << 8) | sum1, len(bits))


def adler(bits, params):
    """Adler-32"""
    return _from_32(zlib.adler32(to_bytes(bits)), len(bits))


def luhn(bits, params):
    """Luhn check digit over nibble digits"""
    digits = [int(nibble, 2) % 10 for nibble in chunks(bits, 4)]
    total = 0
    for pos, d in enumerate(reversed(digits)):
        if pos % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return numeric((10 - total % 10) % 10, len(bits))


DEFINITIONS = [
    op("CHECKSUM8", checksum8, 2),
    op("CRC8", crc8, 4),
    op("CRC16", crc16, 5),
    op("CRC32", crc32, 6),
    op("FLETCHER", fletcher, 3),
    op("ADLER", adler, 3),
    op("LUHN", luhn, 4),
]
