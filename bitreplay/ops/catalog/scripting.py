"""
EXEC: run a UserScript carried in the `code` parameter.

The code travels with the recorded params, so a replay re-runs exactly the
script that produced the step.
"""

from typing import List, Optional

from ..registry import OperationDefinition
from ..script import UserScript
from .base import definer

op = definer("script")

EXEC_COST = 1


def exec_definitions(
    step_budget: Optional[int] = None,
    max_output: Optional[int] = None,
) -> List[OperationDefinition]:
    def exec_code(bits, params):
        """Evaluate a sandboxed UserScript expression"""
        code = params.get("code")
        if not code:
            raise ValueError("EXEC requires code")
        return UserScript(str(code), step_budget=step_budget, max_output=max_output).run(bits)

    return [
        op("EXEC", exec_code, EXEC_COST, ("code",), preserves_length=False),
    ]
