"""
Bit buffer primitives.

A buffer is a plain str of '0'/'1' characters. Buffers are never mutated:
every helper here returns a new string.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import InvalidBitsError, RangeError

_BITS_RE = re.compile(r"^[01]*$")


def is_bits(value: Any) -> bool:
    """True if value is a (possibly empty) bit string."""
    return isinstance(value, str) and _BITS_RE.match(value) is not None


def validate_bits(bits: Any, what: str = "bits") -> str:
    """
    Return bits unchanged or raise InvalidBitsError.

    Args:
        bits: Candidate buffer
        what: Name used in the error message
    """
    if not is_bits(bits):
        preview = repr(bits)[:40]
        raise InvalidBitsError(f"{what} must be a string of '0'/'1', got {preview}")
    return bits


def to_int(bits: str) -> int:
    """Unsigned integer value of a bit string (empty -> 0)."""
    return int(bits, 2) if bits else 0


def from_int(value: int, width: int) -> str:
    """
    Render value as exactly width bits.

    Keeps the low-order bits when value does not fit, pads with zeros otherwise.
    """
    if width <= 0:
        return ""
    value &= (1 << width) - 1
    return format(value, "b").zfill(width)


def fit(bits: str, width: int, keep: str = "right") -> str:
    """Truncate or zero-pad bits to width, keeping the left or right end."""
    if width <= 0:
        return ""
    if len(bits) >= width:
        return bits[len(bits) - width:] if keep == "right" else bits[:width]
    return bits.zfill(width) if keep == "right" else bits.ljust(width, "0")


def cycle_to(pattern: str, width: int) -> str:
    """Repeat pattern until it covers width bits."""
    if width <= 0:
        return ""
    if not pattern:
        raise InvalidBitsError("pattern must not be empty")
    reps = -(-width // len(pattern))
    return (pattern * reps)[:width]


def chunks(bits: str, size: int, pad: bool = False) -> List[str]:
    """Split bits into size-wide chunks; optionally zero-pad the last one."""
    out = [bits[i:i + size] for i in range(0, len(bits), size)]
    if pad and out and len(out[-1]) < size:
        out[-1] = out[-1].ljust(size, "0")
    return out


def invert(bits: str) -> str:
    return bits.translate(_INVERT)


_INVERT = str.maketrans("01", "10")


@dataclass(frozen=True)
class BitRange:
    """
    Half-open range [start, end) inside a buffer.

    Scoped operations run on extract() and are written back with splice().
    """
    start: int
    end: int

    def check(self, length: int) -> "BitRange":
        """Raise RangeError unless 0 <= start <= end <= length."""
        if not (0 <= self.start <= self.end <= length):
            raise RangeError(
                f"range [{self.start}:{self.end}] outside buffer of length {length}"
            )
        return self

    @property
    def length(self) -> int:
        return self.end - self.start

    def extract(self, bits: str) -> str:
        self.check(len(bits))
        return bits[self.start:self.end]

    def splice(self, bits: str, replacement: str) -> str:
        self.check(len(bits))
        return bits[:self.start] + replacement + bits[self.end:]

    def to_dict(self) -> Dict[str, int]:
        return {"start": self.start, "end": self.end}

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> Optional["BitRange"]:
        if not data:
            return None
        return BitRange(start=int(data["start"]), end=int(data["end"]))
