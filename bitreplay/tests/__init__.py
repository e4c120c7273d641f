"""
Test suite for the bit transformation engine.

Focus areas:
- Operation and metric determinism
- Command language parsing and interpretation
- Replay determinism
- Verification strategies
"""
