"""
Command model: the structured form of one console line.

Commands are immutable. Every command keeps the text it was parsed from in
`raw` so results and logs can echo what the user typed.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from ..core.bits import BitRange

COMPARATORS = (">=", "<=", "==", "!=", ">", "<")
EQUALITY_EPSILON = 1e-4


@dataclass(frozen=True)
class OperationCall:
    """
    One operation with caller-supplied params and an optional range.

    Fields:
        operation_id: Upper-cased operation id
        params: Partial params as typed; resolved later by the registry
        bit_range: Scope of the operation, None for the whole buffer
        raw: Source text of this segment
    """
    kind: ClassVar[str] = "operation"

    operation_id: str
    params: Dict[str, Any] = field(default_factory=dict)
    bit_range: Optional[BitRange] = None
    raw: str = ""


@dataclass(frozen=True)
class Pipeline:
    """Operations chained left to right. Empty means no-op."""
    kind: ClassVar[str] = "pipeline"

    operations: Tuple[OperationCall, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class Loop:
    kind: ClassVar[str] = "loop"

    count: int
    operations: Tuple[OperationCall, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class Condition:
    metric: str
    comparator: str
    threshold: float

    def holds(self, value: float) -> bool:
        """Compare value against the threshold; == and != use a 1e-4 epsilon."""
        if self.comparator == ">":
            return value > self.threshold
        if self.comparator == "<":
            return value < self.threshold
        if self.comparator == ">=":
            return value >= self.threshold
        if self.comparator == "<=":
            return value <= self.threshold
        if self.comparator == "==":
            return abs(value - self.threshold) < EQUALITY_EPSILON
        if self.comparator == "!=":
            return abs(value - self.threshold) >= EQUALITY_EPSILON
        return False


@dataclass(frozen=True)
class Conditional:
    """IF metric cmp threshold THEN ops [ELSE ops]."""
    kind: ClassVar[str] = "conditional"

    condition: Condition
    then_ops: Tuple[OperationCall, ...] = ()
    else_ops: Tuple[OperationCall, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class MacroDefinition:
    kind: ClassVar[str] = "macro_def"

    name: str
    body_text: str
    body: "Command"
    raw: str = ""


@dataclass(frozen=True)
class MacroCall:
    kind: ClassVar[str] = "macro_call"

    name: str
    raw: str = ""


@dataclass(frozen=True)
class LiteralCode:
    """EXEC { code }: a UserScript run through the EXEC operation."""
    kind: ClassVar[str] = "exec"

    code: str
    raw: str = ""


@dataclass(frozen=True)
class Help:
    kind: ClassVar[str] = "help"

    raw: str = "HELP"


Command = Union[
    OperationCall,
    Pipeline,
    Loop,
    Conditional,
    MacroDefinition,
    MacroCall,
    LiteralCode,
    Help,
]
