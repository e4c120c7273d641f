"""
Core deterministic primitives.

This module provides the foundational abstractions the engine is built on:
- Bits: buffer validation, integer conversion, BitRange scoping
- Canonical: Deterministic serialization
- Clock: Step timing sources
- IDs: Stable identifier generation
- Errors: Engine error taxonomy
"""

from .bits import BitRange, validate_bits, is_bits, to_int, from_int
from .canonical import canonicalize, canonical_json_bytes, canonical_json_str, params_equal
from .clock import Clock, MonotonicClock, DeterministicClock
from .ids import stable_id
from .errors import (
    BitReplayError,
    InvalidBitsError,
    RangeError,
    RegistryError,
    UnknownOperationError,
    UnknownMetricError,
    OperationExecutionError,
    UnknownMacroError,
    MacroCycleError,
    ScriptError,
    ParseError,
    ResultStoreError,
)

__all__ = [
    "BitRange",
    "validate_bits",
    "is_bits",
    "to_int",
    "from_int",
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "params_equal",
    "Clock",
    "MonotonicClock",
    "DeterministicClock",
    "stable_id",
    "BitReplayError",
    "InvalidBitsError",
    "RangeError",
    "RegistryError",
    "UnknownOperationError",
    "UnknownMetricError",
    "OperationExecutionError",
    "UnknownMacroError",
    "MacroCycleError",
    "ScriptError",
    "ParseError",
    "ResultStoreError",
]
