"""
bitreplay CLI - deterministic bit transformation engine

Commands:
- bitreplay run - Execute and record a strategy
- bitreplay verify / verify-batch - Replay verification of stored results
- bitreplay replay - Re-apply a stored result's steps
- bitreplay console - Interactive command console
- bitreplay ops / metrics - Catalog listings
"""

__version__ = "0.1.0"
