"""
Stable identifier generation.

Provides deterministic ID generation without randomness.
"""

import hashlib


def stable_id(*parts: str) -> str:
    """
    Generate stable ID derived from inputs (no randomness).

    Used for execution result ids, so re-running the same strategy on the
    same input yields the same id.

    Args:
        *parts: String parts to combine into ID

    Returns:
        SHA-256 hash as hex string

    Example:
        stable_id("strategy", "a1b2c3d4") -> "5e0c..."
    """
    raw = "|".join(parts).encode("utf-8")
    return hashlib.sha256(raw).hexdigest()
