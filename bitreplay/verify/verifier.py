"""
Replay verification.

Two strategies are supported:

- TRUST_AND_CHECK takes every recorded after-buffer as ground truth, checks
  per step that the recorded chain is continuous (each step starts where the
  previous one ended) and compares the last after-buffer with the expected
  final buffer. Only that final comparison decides the verdict; a chain break
  is reported as a warning. A tolerance policy may accept a small mismatch.
- RE_EXECUTE (default) re-applies every step with its recorded resolved
  params and requires an exact match per step and at the end.

A mismatch is reported as a VerificationResult value, never raised.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.bits import is_bits
from ..core.errors import BitReplayError
from ..observability import track_verification
from ..ops.registry import OperationRegistry
from ..record.models import ExecutionResult, TransformationStep
from .diff import count_mismatches, hash_bits, mismatch_positions, params_fingerprint

logger = logging.getLogger(__name__)

DEFAULT_MAX_POSITIONS = 100
DEFAULT_WORKERS = 4


class VerificationStrategy(str, Enum):
    TRUST_AND_CHECK = "trust_and_check"
    RE_EXECUTE = "re_execute"


@dataclass(frozen=True)
class TolerancePolicy:
    """
    How much final-buffer mismatch still verifies.

    Exact accepts nothing. tolerate_percent(p) accepts fewer than p percent
    mismatched positions when the lengths are identical, with a warning.
    """
    max_mismatch_percent: float = 0.0

    @classmethod
    def exact(cls) -> "TolerancePolicy":
        return cls(0.0)

    @classmethod
    def tolerate_percent(cls, percent: float) -> "TolerancePolicy":
        if not 0.0 <= percent <= 100.0:
            raise ValueError(f"tolerance must be within 0..100, got {percent}")
        return cls(float(percent))

    @property
    def is_exact(self) -> bool:
        return self.max_mismatch_percent == 0.0

    def accepts(self, mismatch_count: int, length: int, length_delta: int) -> bool:
        if mismatch_count == 0:
            return True
        if self.is_exact or length_delta != 0 or length == 0:
            return False
        return (mismatch_count / length) * 100.0 < self.max_mismatch_percent

    def describe(self) -> str:
        return "exact" if self.is_exact else f"tolerate<{self.max_mismatch_percent:g}%"


@dataclass(frozen=True)
class StepVerification:
    step_index: int
    operation: str
    verified: bool
    mismatch_count: int
    expected_hash: str
    actual_hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stepIndex": self.step_index,
            "operation": self.operation,
            "verified": self.verified,
            "mismatchCount": self.mismatch_count,
            "expectedHash": self.expected_hash,
            "actualHash": self.actual_hash,
        }


@dataclass(frozen=True)
class VerificationResult:
    """
    Verdict of one verification.

    Fields:
        verified: True when the reconstruction matches (or is tolerated)
        strategy: Strategy used
        match_percentage: Share of expected positions that match, 0..100
        mismatch_count: Differing positions plus length difference
        length_delta: len(actual) - len(expected)
        mismatch_positions: First mismatching indices (capped)
        expected_hash / actual_hash: hash_bits of both final buffers
        step_verifications: Per-step verdicts in order
        failed_step / failed_operation: First offending step, if any
        warning: Tolerated mismatch or recorded chain break, if any
        error: Set when a step could not be applied or input was invalid
    """
    verified: bool
    strategy: VerificationStrategy
    match_percentage: float
    mismatch_count: int
    length_delta: int
    mismatch_positions: Tuple[int, ...]
    expected_hash: str
    actual_hash: str
    step_verifications: Tuple[StepVerification, ...] = ()
    failed_step: Optional[int] = None
    failed_operation: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    result_id: Optional[str] = field(default=None, compare=False)

    @classmethod
    def unreadable(cls, strategy: VerificationStrategy, result_id: str, error: str) -> "VerificationResult":
        """Failed verdict for a stored result that could not be loaded."""
        return cls(
            verified=False,
            strategy=VerificationStrategy(strategy),
            match_percentage=0.0,
            mismatch_count=0,
            length_delta=0,
            mismatch_positions=(),
            expected_hash="",
            actual_hash="",
            error=error,
            result_id=result_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resultId": self.result_id,
            "verified": self.verified,
            "strategy": self.strategy.value,
            "matchPercentage": self.match_percentage,
            "mismatchCount": self.mismatch_count,
            "lengthDelta": self.length_delta,
            "mismatchPositions": list(self.mismatch_positions),
            "expectedHash": self.expected_hash,
            "actualHash": self.actual_hash,
            "stepVerifications": [s.to_dict() for s in self.step_verifications],
            "failedStep": self.failed_step,
            "failedOperation": self.failed_operation,
            "warning": self.warning,
            "error": self.error,
        }


@dataclass(frozen=True)
class DeterminismReport:
    deterministic: bool
    outputs: Tuple[str, ...]


def _match_percentage(expected: str, mismatches: int) -> float:
    if not expected:
        return 100.0 if mismatches == 0 else 0.0
    return round(max(0.0, (len(expected) - mismatches) / len(expected) * 100.0), 4)


class ReplayVerifier:
    """
    Verifies recorded executions against an operation registry.

    Usage:
        verifier = ReplayVerifier(OperationRegistry.default())
        outcome = verifier.verify_result(result)
        assert outcome.verified
    """

    def __init__(self, registry: OperationRegistry, max_positions: int = DEFAULT_MAX_POSITIONS) -> None:
        self.registry = registry
        self.max_positions = max_positions

    def verify(
        self,
        initial_bits: str,
        steps: Sequence[TransformationStep],
        expected_final_bits: str,
        strategy: VerificationStrategy = VerificationStrategy.RE_EXECUTE,
        tolerance: Optional[TolerancePolicy] = None,
    ) -> VerificationResult:
        """
        Verify that steps reproduce expected_final_bits from initial_bits.

        Raises:
            ValueError: If a non-exact tolerance is combined with RE_EXECUTE
        """
        strategy = VerificationStrategy(strategy)
        tolerance = tolerance or TolerancePolicy.exact()
        if strategy is VerificationStrategy.RE_EXECUTE and not tolerance.is_exact:
            raise ValueError("re-execute verification requires an exact tolerance policy")

        for what, bits in (("initial", initial_bits), ("expected", expected_final_bits)):
            if not is_bits(bits):
                return self._failed(strategy, expected_final_bits, "", f"{what} bits are not binary")

        note = None
        if strategy is VerificationStrategy.TRUST_AND_CHECK:
            actual, checks, note = self._trust(initial_bits, steps)
            failed, error = None, None
        else:
            actual, checks, failed, error = self._re_execute(initial_bits, steps)

        result = self._compare(strategy, tolerance, expected_final_bits, actual, checks, failed, error, note)
        track_verification(strategy.value, result.verified)
        logger.info(
            "Verification finished",
            extra={
                "strategy": strategy.value,
                "verified": result.verified,
                "mismatch_count": result.mismatch_count,
                "steps": len(steps),
            },
        )
        return result

    def verify_result(
        self,
        result: ExecutionResult,
        strategy: VerificationStrategy = VerificationStrategy.RE_EXECUTE,
        tolerance: Optional[TolerancePolicy] = None,
    ) -> VerificationResult:
        outcome = self.verify(result.initial_bits, result.steps, result.final_bits, strategy, tolerance)
        return _with_id(outcome, result.id)

    def verify_many(
        self,
        results: Iterable[ExecutionResult],
        strategy: VerificationStrategy = VerificationStrategy.RE_EXECUTE,
        tolerance: Optional[TolerancePolicy] = None,
        max_workers: int = DEFAULT_WORKERS,
    ) -> List[VerificationResult]:
        """
        Verify many results in parallel, one verification per worker task.

        Results come back in input order.
        """
        strategy = VerificationStrategy(strategy)
        tolerance = tolerance or TolerancePolicy.exact()
        if strategy is VerificationStrategy.RE_EXECUTE and not tolerance.is_exact:
            raise ValueError("re-execute verification requires an exact tolerance policy")

        items = list(results)
        if not items:
            return []
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
            return list(pool.map(lambda r: self.verify_result(r, strategy, tolerance), items))

    def _trust(
        self, initial_bits: str, steps: Sequence[TransformationStep]
    ) -> Tuple[str, List[StepVerification], Optional[str]]:
        checks: List[StepVerification] = []
        broken: Optional[TransformationStep] = None
        prev = initial_bits
        for step in steps:
            mismatches = count_mismatches(prev, step.full_before_bits)
            checks.append(StepVerification(
                step_index=step.index,
                operation=step.operation,
                verified=mismatches == 0,
                mismatch_count=mismatches,
                expected_hash=hash_bits(step.full_before_bits),
                actual_hash=hash_bits(prev),
            ))
            if mismatches and broken is None:
                broken = step
            prev = step.full_after_bits
        note = None
        if broken is not None:
            note = f"recorded chain breaks before step {broken.index} ({broken.operation})"
            logger.warning("Recorded chain is not continuous", extra={"step": broken.index})
        return prev, checks, note

    def _re_execute(
        self, initial_bits: str, steps: Sequence[TransformationStep]
    ) -> Tuple[str, List[StepVerification], Optional[TransformationStep], Optional[str]]:
        checks: List[StepVerification] = []
        bits = initial_bits
        for step in steps:
            try:
                out = self.registry.apply(step.operation, bits, step.params, step.bit_range)
            except BitReplayError as e:
                return bits, checks, step, f"step {step.index} ({step.operation}) failed: {e}"
            mismatches = count_mismatches(out, step.full_after_bits)
            checks.append(StepVerification(
                step_index=step.index,
                operation=step.operation,
                verified=mismatches == 0,
                mismatch_count=mismatches,
                expected_hash=hash_bits(step.full_after_bits),
                actual_hash=hash_bits(out),
            ))
            bits = out
            if mismatches:
                return bits, checks, step, f"step {step.index} ({step.operation}) diverged by {mismatches} bits"
        return bits, checks, None, None

    def _compare(
        self,
        strategy: VerificationStrategy,
        tolerance: TolerancePolicy,
        expected: str,
        actual: str,
        checks: List[StepVerification],
        failed: Optional[TransformationStep],
        error: Optional[str],
        note: Optional[str] = None,
    ) -> VerificationResult:
        expected_hash = hash_bits(expected)
        actual_hash = hash_bits(actual)
        if expected_hash == actual_hash and expected == actual:
            positions: List[int] = []
            mismatches = 0
        else:
            positions = mismatch_positions(actual, expected, limit=self.max_positions)
            mismatches = count_mismatches(actual, expected)

        length_delta = len(actual) - len(expected)
        warning = None
        if failed is not None:
            verified = False
        elif mismatches == 0:
            verified = True
        elif strategy is VerificationStrategy.TRUST_AND_CHECK and tolerance.accepts(
            mismatches, len(expected), length_delta
        ):
            verified = True
            percent = mismatches / len(expected) * 100.0
            warning = f"tolerated {mismatches} mismatched bits ({percent:.4f}%)"
            logger.warning("Verification passed with tolerated mismatch", extra={"mismatch_count": mismatches})
        else:
            verified = False
        if note:
            warning = f"{warning}; {note}" if warning else note

        return VerificationResult(
            verified=verified,
            strategy=strategy,
            match_percentage=_match_percentage(expected, mismatches),
            mismatch_count=mismatches,
            length_delta=length_delta,
            mismatch_positions=tuple(positions),
            expected_hash=expected_hash,
            actual_hash=actual_hash,
            step_verifications=tuple(checks),
            failed_step=failed.index if failed is not None else None,
            failed_operation=failed.operation if failed is not None else None,
            warning=warning,
            error=error,
        )

    @staticmethod
    def _failed(strategy: VerificationStrategy, expected: str, actual: str, error: str) -> VerificationResult:
        return VerificationResult(
            verified=False,
            strategy=strategy,
            match_percentage=0.0,
            mismatch_count=max(len(expected), len(actual)) if isinstance(expected, str) else 0,
            length_delta=0,
            mismatch_positions=(),
            expected_hash=hash_bits(expected) if isinstance(expected, str) else "",
            actual_hash=hash_bits(actual),
            error=error,
        )


def _with_id(outcome: VerificationResult, result_id: str) -> VerificationResult:
    return replace(outcome, result_id=result_id)


def check_operation_determinism(
    registry: OperationRegistry,
    operation_id: str,
    bits: str,
    iterations: int = 5,
) -> DeterminismReport:
    """
    Execute an operation repeatedly with no caller params and compare outputs
    and resolved params across runs.
    """
    outputs: List[str] = []
    fingerprints = set()
    for _ in range(max(1, iterations)):
        outcome = registry.execute(operation_id, bits, {})
        outputs.append(outcome.bits)
        fingerprints.add(params_fingerprint(outcome.params))
    deterministic = len(set(outputs)) == 1 and len(fingerprints) == 1
    return DeterminismReport(deterministic=deterministic, outputs=tuple(outputs))
