"""
Buffer comparison helpers: content hash and positional diff.
"""

from typing import Iterable, List, Optional

from ..core.canonical import canonical_json_str

_MASK32 = 0xFFFFFFFF


def hash_bits(bits: str) -> str:
    """
    32-bit rolling multiplicative hash (x31) of a buffer.

    Wraps like signed 32-bit arithmetic and reports the magnitude as
    8 upper-case hex digits. Cheap equality pre-check, not a digest.
    """
    h = 0
    for ch in bits:
        h = (h * 31 + ord(ch)) & _MASK32
    if h & 0x80000000:
        h -= 1 << 32
    return format(abs(h), "X").zfill(8)


def mismatch_positions(a: str, b: str, limit: Optional[int] = None) -> List[int]:
    """
    Indices where a and b differ; every index past the shorter buffer counts.

    Args:
        limit: Stop after this many positions (None for all)
    """
    positions: List[int] = []
    shorter = min(len(a), len(b))
    longer = max(len(a), len(b))
    for i in range(shorter):
        if a[i] != b[i]:
            positions.append(i)
            if limit is not None and len(positions) >= limit:
                return positions
    for i in range(shorter, longer):
        if limit is not None and len(positions) >= limit:
            break
        positions.append(i)
    return positions


def count_mismatches(a: str, b: str) -> int:
    """Differing positions plus the length difference."""
    return abs(len(a) - len(b)) + sum(1 for x, y in zip(a, b) if x != y)


def execution_checksum(initial_bits: str, step_summaries: Iterable[str], final_bits: str) -> str:
    """
    Fingerprint of a whole execution.

    step_summaries are `OPERATION:<hash of after bits>` strings, one per step.
    """
    parts = [hash_bits(initial_bits), "|".join(step_summaries), hash_bits(final_bits)]
    return hash_bits("::".join(parts))


def params_fingerprint(params: dict) -> str:
    return hash_bits(canonical_json_str(params))
