"""
Parameter names and typed accessors shared by operation implementations.
"""

from typing import Any, Mapping, Optional

INT_PARAMS = frozenset({"count", "seed", "start", "end", "position", "source", "dest", "alignment"})
BINARY_PARAMS = frozenset({"mask", "value", "bits"})
TEXT_PARAMS = frozenset({"direction", "code"})

DIRECTIONS = ("encode", "decode")

Params = Mapping[str, Any]


def get_int(params: Params, key: str, default: int) -> int:
    value = params.get(key)
    return default if value is None else int(value)


def get_bits(params: Params, key: str, default: Optional[str] = None) -> Optional[str]:
    value = params.get(key)
    return default if value is None else str(value)


def is_decimal(value: Any) -> bool:
    """True for ints and strings made only of decimal digits."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, str) and value.isdigit()


def coerce_ints(params: Mapping[str, Any]) -> dict:
    """
    Return a copy with decimal strings under integer-typed names turned into ints.

    Values that do not parse are left alone so the registry can reject them
    with a precise message.
    """
    out = dict(params)
    for key in INT_PARAMS:
        value = out.get(key)
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            out[key] = int(value.strip())
    return out
