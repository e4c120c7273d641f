"""
Deterministic Bit Transformation Engine

Command-driven bit-level transformations with recorded, replayable, verifiable executions.
"""

__version__ = "0.1.0"
