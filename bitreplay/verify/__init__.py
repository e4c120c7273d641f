"""
Replay verification: buffer diffs, strategies, tolerance and batch runs.
"""

from .diff import count_mismatches, execution_checksum, hash_bits, mismatch_positions
from .verifier import (
    DeterminismReport,
    ReplayVerifier,
    StepVerification,
    TolerancePolicy,
    VerificationResult,
    VerificationStrategy,
    check_operation_determinism,
)

__all__ = [
    "count_mismatches",
    "execution_checksum",
    "hash_bits",
    "mismatch_positions",
    "DeterminismReport",
    "ReplayVerifier",
    "StepVerification",
    "TolerancePolicy",
    "VerificationResult",
    "VerificationStrategy",
    "check_operation_determinism",
]
