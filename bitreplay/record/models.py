"""
Recorded execution shapes.

These are the persisted form of a run: the field aliases (fullBeforeBits,
strategyId, ...) are the on-disk JSON names, the Python attributes are
snake_case. Steps are frozen once recorded.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.bits import BitRange

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
STATUS_CANCELLED = "cancelled"


class RecordModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class StepRange(RecordModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    start: int
    end: int

    def to_bit_range(self) -> BitRange:
        return BitRange(start=self.start, end=self.end)

    @staticmethod
    def from_bit_range(bit_range: BitRange) -> "StepRange":
        return StepRange(start=bit_range.start, end=bit_range.end)


class TransformationStep(RecordModel):
    """
    One applied operation.

    params are the resolved params the registry actually used, so a replay
    needs nothing but this step and the previous buffer.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    index: int
    operation: str
    params: Dict[str, Any] = Field(default_factory=dict)
    bit_ranges: List[StepRange] = Field(default_factory=list)
    full_before_bits: str
    full_after_bits: str
    before_bits: str
    after_bits: str
    metrics: Dict[str, float] = Field(default_factory=dict)
    cost: int = 0
    duration: float = 0.0

    @property
    def bit_range(self) -> Optional[BitRange]:
        """The scope of the step, None when it covered the whole buffer."""
        if not self.bit_ranges:
            return None
        return self.bit_ranges[0].to_bit_range()


class ExecutionResult(RecordModel):
    """A finished (completed or failed) strategy run."""

    id: str
    strategy_id: str = ""
    strategy_name: str = ""
    initial_bits: str
    final_bits: str
    initial_metrics: Dict[str, float] = Field(default_factory=dict)
    final_metrics: Dict[str, float] = Field(default_factory=dict)
    steps: List[TransformationStep] = Field(default_factory=list)
    status: Literal["completed", "failed", "cancelled"] = STATUS_COMPLETED
    error: Optional[str] = None
    total_cost: int = 0
    budget_exceeded: bool = False
    operation_count: int = 0

    @classmethod
    def from_json(cls, json_str: str) -> "ExecutionResult":
        return cls.model_validate_json(json_str)
