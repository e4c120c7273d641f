"""
Built-in operation catalog.

Each module contributes a DEFINITIONS list; the registry validates every
entry at startup.
"""

from typing import List, Optional

from ..registry import OperationDefinition
from . import arithmetic, checksums, crypto, data, encoding, logic, manipulation, shifts
from .scripting import exec_definitions

_MODULES = (logic, shifts, manipulation, encoding, arithmetic, data, checksums, crypto)


def builtin_definitions(
    script_step_budget: Optional[int] = None,
    script_max_output: Optional[int] = None,
) -> List[OperationDefinition]:
    """All built-in definitions, in catalog order."""
    out: List[OperationDefinition] = []
    for module in _MODULES:
        out.extend(module.DEFINITIONS)
    out.extend(exec_definitions(script_step_budget, script_max_output))
    return out


__all__ = ["builtin_definitions"]
