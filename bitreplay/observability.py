"""
Prometheus metrics for the bit transformation engine.

Metrics stay unregistered (and every track_* helper is a no-op) until
init_metrics() is called, so library users who never opt in pay nothing.

Environment Variables:
    BITREPLAY_METRICS_ENABLED: Start the /metrics server from the console (true/false) - default: false
    BITREPLAY_METRICS_PORT: HTTP port for /metrics endpoint - default: 9108

Usage:
    from bitreplay.observability import init_metrics, track_operation

    init_metrics()
    track_operation("XOR", "ok")
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

OPERATIONS_TOTAL: Optional[Counter] = None
COMMANDS_TOTAL: Optional[Counter] = None
VERIFICATIONS_TOTAL: Optional[Counter] = None
COMMAND_DURATION: Optional[Histogram] = None

_metrics_initialized = False
_metrics_lock = threading.Lock()


def init_metrics() -> None:
    """
    Register engine metrics (idempotent, thread-safe).
    """
    global OPERATIONS_TOTAL, COMMANDS_TOTAL, VERIFICATIONS_TOTAL, COMMAND_DURATION
    global _metrics_initialized

    with _metrics_lock:
        if _metrics_initialized:
            return

        OPERATIONS_TOTAL = Counter(
            "bitreplay_operations_total",
            "Operations applied, by operation id and outcome",
            labelnames=["operation", "outcome"],
        )

        COMMANDS_TOTAL = Counter(
            "bitreplay_commands_total",
            "Commands interpreted, by command kind and outcome",
            labelnames=["kind", "outcome"],
        )

        VERIFICATIONS_TOTAL = Counter(
            "bitreplay_verifications_total",
            "Replay verifications, by strategy and verdict",
            labelnames=["strategy", "verdict"],
        )

        COMMAND_DURATION = Histogram(
            "bitreplay_command_duration_seconds",
            "Duration of command interpretation in seconds",
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
        )

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")


def start_metrics_server(enabled: bool, port: int) -> None:
    """
    Start the Prometheus HTTP server in a daemon thread.

    Args:
        enabled: Whether to start the server at all
        port: HTTP port for /metrics
    """
    if not enabled:
        logger.info("Metrics server disabled")
        return

    init_metrics()

    try:
        start_http_server(port, addr="0.0.0.0")
        logger.info(f"Metrics server started on http://0.0.0.0:{port}/metrics")
    except OSError as e:
        logger.error(f"Failed to start metrics server: {e}")


def track_operation(operation: str, outcome: str) -> None:
    if OPERATIONS_TOTAL is not None:
        OPERATIONS_TOTAL.labels(operation=operation, outcome=outcome).inc()


def track_command(kind: str, outcome: str) -> None:
    if COMMANDS_TOTAL is not None:
        COMMANDS_TOTAL.labels(kind=kind, outcome=outcome).inc()


def track_verification(strategy: str, verified: bool) -> None:
    if VERIFICATIONS_TOTAL is not None:
        VERIFICATIONS_TOTAL.labels(strategy=strategy, verdict="verified" if verified else "mismatch").inc()


@contextmanager
def track_command_duration() -> Generator[None, None, None]:
    """
    Context manager timing one command.

    Usage:
        with track_command_duration():
            interpreter.execute(command, bits)
    """
    if COMMAND_DURATION is None:
        yield
        return

    with COMMAND_DURATION.time():
        yield
