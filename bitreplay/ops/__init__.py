"""
Operations: registry, parameter resolution and the built-in catalog.
"""

from .registry import OperationDefinition, OperationOutcome, OperationRegistry
from .resolver import ParameterResolver, content_seed, lfsr_seed
from .script import UserScript, compile_script

__all__ = [
    "OperationDefinition",
    "OperationOutcome",
    "OperationRegistry",
    "ParameterResolver",
    "content_seed",
    "lfsr_seed",
    "UserScript",
    "compile_script",
]
