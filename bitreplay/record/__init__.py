"""
Execution recording: step and result models, the recorder and JSON storage.
"""

from .models import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_FAILED,
    ExecutionResult,
    StepRange,
    TransformationStep,
)
from .recorder import ExecutionRecorder
from .store import ResultStore

__all__ = [
    "STATUS_CANCELLED",
    "STATUS_COMPLETED",
    "STATUS_FAILED",
    "ExecutionResult",
    "StepRange",
    "TransformationStep",
    "ExecutionRecorder",
    "ResultStore",
]
