"""
Helpers shared by the built-in operation catalog.
"""

from typing import Any, Iterable, List

from ...core.bits import chunks, cycle_to, from_int, to_int
from ..registry import OperationDefinition


def definer(category: str):
    """
    Return a constructor that stamps definitions with a category.

    Usage:
        op = definer("logic")
        DEFINITIONS = [op("NOT", not_, cost=1)]
    """
    def op(op_id: str, implementation, cost: int, consumes: Iterable[str] = (), **kwargs: Any) -> OperationDefinition:
        return OperationDefinition(
            id=op_id,
            implementation=implementation,
            cost=cost,
            consumes=frozenset(consumes),
            category=category,
            description=(implementation.__doc__ or "").strip().splitlines()[0] if implementation.__doc__ else "",
            **kwargs,
        )
    return op


def byte_values(bits: str) -> List[int]:
    """Unsigned byte values; the last partial byte is zero-padded on the right."""
    return [int(chunk, 2) for chunk in chunks(bits, 8, pad=True)]


def to_bytes(bits: str) -> bytes:
    return bytes(byte_values(bits))


def numeric(value: int, width: int) -> str:
    """Render a computed number into a buffer of the same width."""
    return from_int(value, width)


def mask_int(pattern: str, width: int) -> int:
    """Integer value of pattern cycled to width."""
    return to_int(cycle_to(pattern, width))
