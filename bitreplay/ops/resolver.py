"""
Parameter resolver: turns caller-supplied params into the complete set used.

Resolution is an explicit step so "what was actually used" can be persisted
and replayed. It must be deterministic: the same operation, buffer and caller
params always produce equal resolved params.
"""

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .params import coerce_ints, is_decimal

if TYPE_CHECKING:
    from .registry import OperationRegistry

LFSR_DEFAULT_SEED = 0xACE1
NUMERIC_KEYS = ("count", "seed", "position")


def content_seed(bits: str) -> int:
    """Sum of the indices holding '1', or 1 when that sum is zero."""
    return sum(i for i, b in enumerate(bits) if b == "1") or 1


def lfsr_seed(bits: str) -> int:
    """16-bit fold of the content seed; a zero state would never advance."""
    folded = content_seed(bits) & 0xFFFF
    return folded or LFSR_DEFAULT_SEED


class ParameterResolver:
    """
    Fills in missing masks and seeds from the operation's own defaults.

    Usage:
        resolver = ParameterResolver(registry)
        params = resolver.resolve("AND", "1010", {})
        # {"mask": "1111"}
    """

    def __init__(self, registry: "OperationRegistry") -> None:
        self._registry = registry

    def resolve(
        self,
        operation_id: str,
        bits: str,
        caller_params: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Resolve caller params for one application of operation_id on bits.

        Args:
            operation_id: Registered operation id
            bits: The buffer (or scoped segment) the operation will see
            caller_params: Partial params; never mutated

        Returns:
            New dict with every implicit choice materialized

        Raises:
            UnknownOperationError: If operation_id is not registered
        """
        definition = self._registry.lookup(operation_id)
        params = coerce_ints(caller_params or {})
        consumes = definition.consumes

        if consumes is not None:
            numeric_key = next((k for k in NUMERIC_KEYS if k in consumes), None)

            # count is the user-facing name for a seed or a single position
            if numeric_key not in (None, "count") and "count" in params:
                count = params.pop("count")
                params.setdefault(numeric_key, count)

            # A bare digit token lands in mask/value; reinterpret it for
            # number-only operations ("ROL 10" rotates by ten).
            if (
                numeric_key is not None
                and numeric_key not in params
                and not ({"mask", "value"} & consumes)
                and is_decimal(params.get("value"))
            ):
                params[numeric_key] = int(params["value"])

            params = {k: v for k, v in params.items() if k in consumes}

        for key, value in definition.defaults.items():
            if params.get(key) is None:
                params[key] = value

        if definition.requires_mask and params.get("mask") is None:
            params["mask"] = definition.default_mask(len(bits))

        if definition.requires_seed and params.get("seed") is None:
            params["seed"] = definition.default_seed(bits)

        return params
