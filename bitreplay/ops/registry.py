"""
Operation registry: the closed set of bit transformations.

Every definition is validated when it is registered, so a missing default
mask or seed is caught at startup instead of at replay time.

Contract for implementations:
- Pure (no clocks, no randomness, no shared state)
- Input is a bit string plus fully resolved parameters
- Output is a new bit string
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Mapping, Optional

from ..core.bits import BitRange, is_bits, validate_bits
from ..core.errors import (
    BitReplayError,
    InvalidBitsError,
    OperationExecutionError,
    RangeError,
    RegistryError,
    UnknownOperationError,
)
from .params import BINARY_PARAMS, DIRECTIONS, INT_PARAMS
from .script import DEFAULT_MAX_OUTPUT

logger = logging.getLogger(__name__)

Implementation = Callable[[str, Mapping[str, Any]], str]
MaskBuilder = Callable[[int], str]
SeedBuilder = Callable[[str], int]

DEFAULT_COST = 1
# sizes that length-changing operations allocate directly
GROWTH_PARAMS = frozenset({"count", "alignment"})


def ones(width: int) -> str:
    return "1" * width


def zeros(width: int) -> str:
    return "0" * width


@dataclass(frozen=True)
class OperationDefinition:
    """
    Immutable description of one operation.

    Fields:
        id: Upper-case operation identifier
        implementation: Pure function (bits, resolved_params) -> bits
        cost: Non-negative budget units charged per application
        requires_mask: Resolver must materialize a mask when none is given
        requires_seed: Resolver must materialize a seed when none is given
        default_mask: Identity-preserving mask builder (width -> mask)
        default_seed: Content-derived seed builder (bits -> seed)
        consumes: Parameter names the implementation reads (None = keep all)
        defaults: Static parameter defaults materialized by the resolver
        preserves_length: Output must have the input's length
        binary_params: Parameters that must hold bit strings
    """
    id: str
    implementation: Implementation
    cost: int = DEFAULT_COST
    requires_mask: bool = False
    requires_seed: bool = False
    default_mask: Optional[MaskBuilder] = None
    default_seed: Optional[SeedBuilder] = None
    consumes: Optional[FrozenSet[str]] = frozenset()
    defaults: Mapping[str, Any] = field(default_factory=dict)
    preserves_length: bool = True
    binary_params: FrozenSet[str] = BINARY_PARAMS
    category: str = "misc"
    description: str = ""

    def validate(self) -> None:
        """Raise RegistryError if the definition is not fully classified."""
        if not self.id or not self.id.replace("_", "").isalnum():
            raise RegistryError(f"Invalid operation id: {self.id!r}")
        if not callable(self.implementation):
            raise RegistryError(f"{self.id}: implementation is not callable")
        if not isinstance(self.cost, int) or isinstance(self.cost, bool) or self.cost < 0:
            raise RegistryError(f"{self.id}: cost must be a non-negative int, got {self.cost!r}")
        if self.requires_mask and self.default_mask is None:
            raise RegistryError(f"{self.id}: requires_mask but no default mask builder")
        if self.requires_seed and self.default_seed is None:
            raise RegistryError(f"{self.id}: requires_seed but no default seed builder")
        if self.consumes is not None:
            if self.requires_mask and "mask" not in self.consumes:
                raise RegistryError(f"{self.id}: requires_mask but does not consume mask")
            if self.requires_seed and "seed" not in self.consumes:
                raise RegistryError(f"{self.id}: requires_seed but does not consume seed")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cost": self.cost,
            "requires_mask": self.requires_mask,
            "requires_seed": self.requires_seed,
            "preserves_length": self.preserves_length,
            "consumes": sorted(self.consumes) if self.consumes is not None else None,
            "category": self.category,
            "description": self.description,
        }


@dataclass(frozen=True)
class OperationOutcome:
    """
    Result of resolving and applying one operation.

    Fields:
        operation: Operation id
        bits: Full buffer after the operation
        params: Resolved parameters actually used
        cost: Cost charged
        bit_range: Range the operation was scoped to, if any
    """
    operation: str
    bits: str
    params: Dict[str, Any]
    cost: int
    bit_range: Optional[BitRange] = None


def _normalize(operation_id: str) -> str:
    return str(operation_id).strip().upper()


class OperationRegistry:
    """
    Registry of operation definitions.

    Usage:
        registry = OperationRegistry.default()
        outcome = registry.execute("XOR", "1010", {"mask": "1100"})
        assert outcome.bits == "0110"
    """

    def __init__(self, max_length: int = DEFAULT_MAX_OUTPUT) -> None:
        self._definitions: Dict[str, OperationDefinition] = {}
        self._resolver = None
        self.max_length = max_length

    @classmethod
    def default(
        cls,
        script_step_budget: Optional[int] = None,
        script_max_output: Optional[int] = None,
    ) -> "OperationRegistry":
        """Build a registry holding the built-in catalog."""
        from .catalog import builtin_definitions

        registry = cls(max_length=script_max_output or DEFAULT_MAX_OUTPUT)
        for definition in builtin_definitions(
            script_step_budget=script_step_budget,
            script_max_output=script_max_output,
        ):
            registry.register(definition)
        return registry

    @property
    def resolver(self):
        if self._resolver is None:
            from .resolver import ParameterResolver

            self._resolver = ParameterResolver(self)
        return self._resolver

    def register(self, definition: OperationDefinition) -> None:
        """
        Register an operation definition.

        Raises:
            RegistryError: If the definition fails validation or the id is taken
        """
        definition.validate()
        op_id = _normalize(definition.id)
        if op_id in self._definitions:
            raise RegistryError(f"Operation already registered: {op_id}")
        self._definitions[op_id] = definition

    def register_script(
        self,
        operation_id: str,
        source: str,
        cost: int = DEFAULT_COST,
        step_budget: Optional[int] = None,
        max_output: Optional[int] = None,
        description: str = "",
    ) -> OperationDefinition:
        """
        Register a code-based custom operation.

        The source is a UserScript expression evaluated with `bits` and
        `params` in scope. It is compiled here so syntax errors surface at
        registration.

        Raises:
            ScriptError: If the source is rejected by the sandbox
            RegistryError: If the id is already registered
        """
        from .script import UserScript

        script = UserScript(source, step_budget=step_budget, max_output=max_output)

        def run_script(bits: str, params: Mapping[str, Any]) -> str:
            return script.run(bits, params)

        definition = OperationDefinition(
            id=_normalize(operation_id),
            implementation=run_script,
            cost=cost,
            consumes=None,
            preserves_length=False,
            category="custom",
            description=description or "user script",
        )
        self.register(definition)
        return definition

    def unregister(self, operation_id: str) -> bool:
        return self._definitions.pop(_normalize(operation_id), None) is not None

    def get(self, operation_id: str) -> Optional[OperationDefinition]:
        return self._definitions.get(_normalize(operation_id))

    def lookup(self, operation_id: str) -> OperationDefinition:
        """
        Look up a definition.

        Raises:
            UnknownOperationError: If the id is not registered
        """
        definition = self.get(operation_id)
        if definition is None:
            raise UnknownOperationError(f"Unknown operation: {operation_id}")
        return definition

    def ids(self) -> List[str]:
        return sorted(self._definitions)

    def definitions(self) -> Iterator[OperationDefinition]:
        for op_id in self.ids():
            yield self._definitions[op_id]

    def cost(self, operation_id: str) -> int:
        definition = self.get(operation_id)
        return definition.cost if definition is not None else DEFAULT_COST

    def __contains__(self, operation_id: object) -> bool:
        return isinstance(operation_id, str) and _normalize(operation_id) in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def resolve(
        self,
        operation_id: str,
        bits: str,
        params: Optional[Mapping[str, Any]] = None,
        bit_range: Optional[BitRange] = None,
    ) -> Dict[str, Any]:
        """Resolve params against the buffer (or the scoped segment)."""
        segment = bits
        if bit_range is not None:
            try:
                segment = bit_range.extract(bits)
            except RangeError as e:
                raise OperationExecutionError(f"{_normalize(operation_id)}: {e}") from e
        return self.resolver.resolve(operation_id, segment, params)

    def apply(
        self,
        operation_id: str,
        bits: str,
        params: Mapping[str, Any],
        bit_range: Optional[BitRange] = None,
    ) -> str:
        """
        Apply an operation using already-resolved parameters.

        Never re-resolves: replay depends on this.

        Raises:
            UnknownOperationError: If the id is not registered
            OperationExecutionError: If the input or the implementation fails
        """
        definition = self.lookup(operation_id)
        op_id = _normalize(definition.id)
        try:
            validate_bits(bits)
        except InvalidBitsError as e:
            raise OperationExecutionError(f"{op_id}: {e}") from e

        segment = bits
        if bit_range is not None:
            try:
                segment = bit_range.extract(bits)
            except RangeError as e:
                raise OperationExecutionError(f"{op_id}: {e}") from e

        self._check_params(definition, segment, params, self.max_length)

        try:
            out = definition.implementation(segment, params)
        except BitReplayError as e:
            raise OperationExecutionError(f"{op_id}: {e}") from e
        except (
            ValueError, TypeError, KeyError, IndexError, ZeroDivisionError, OverflowError, MemoryError
        ) as e:
            raise OperationExecutionError(f"{op_id} failed: {e}") from e

        if not isinstance(out, str):
            raise OperationExecutionError(
                f"{op_id} must return a bit string, got {type(out).__name__}"
            )
        if not is_bits(out):
            raise OperationExecutionError(f"{op_id} returned a non-binary string")
        if len(out) > max(self.max_length, len(segment)):
            raise OperationExecutionError(f"{op_id} output exceeds the {self.max_length} bit limit")
        if definition.preserves_length and len(out) != len(segment):
            raise OperationExecutionError(
                f"{op_id} changed length {len(segment)} -> {len(out)}"
            )

        if bit_range is None:
            return out
        return bit_range.splice(bits, out)

    def execute(
        self,
        operation_id: str,
        bits: str,
        params: Optional[Mapping[str, Any]] = None,
        bit_range: Optional[BitRange] = None,
    ) -> OperationOutcome:
        """Resolve then apply; returns the outcome with the resolved params."""
        definition = self.lookup(operation_id)
        resolved = self.resolve(definition.id, bits, params, bit_range)
        out = self.apply(definition.id, bits, resolved, bit_range)
        logger.debug(
            "Applied operation",
            extra={"operation": definition.id, "in_len": len(bits), "out_len": len(out)},
        )
        return OperationOutcome(
            operation=_normalize(definition.id),
            bits=out,
            params=resolved,
            cost=definition.cost,
            bit_range=bit_range,
        )

    @staticmethod
    def _check_params(
        definition: OperationDefinition, segment: str, params: Mapping[str, Any], max_length: int
    ) -> None:
        op_id = definition.id
        for key, value in params.items():
            if key in definition.binary_params and key in BINARY_PARAMS:
                if not is_bits(value):
                    raise OperationExecutionError(f"{op_id}: {key} must be a bit string")
                if not value and key != "bits" and segment:
                    raise OperationExecutionError(f"{op_id}: {key} must not be empty")
            elif key in INT_PARAMS:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise OperationExecutionError(f"{op_id}: {key} must be an integer")
                if key in GROWTH_PARAMS and not definition.preserves_length and abs(value) > max_length:
                    raise OperationExecutionError(f"{op_id}: {key} exceeds the {max_length} bit limit")
            elif key == "direction" and value not in DIRECTIONS:
                raise OperationExecutionError(f"{op_id}: direction must be encode or decode")
