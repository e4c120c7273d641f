"""
Structured logging configuration for bitreplay.

Provides JSON-formatted logs with trace_id support so every line of a run
or verification can be correlated.

Environment Variables:
    BITREPLAY_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    BITREPLAY_LOG_FORMAT: Log format (json, text) - default: json

Usage:
    from bitreplay.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, trace_id="strategy-42")
    logger.info("Running strategy", extra={"steps": 3})
"""

import logging
import os
import sys
from typing import Optional, TextIO

from pythonjsonlogger import jsonlogger

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class TraceIDFilter(logging.Filter):
    """
    Logging filter that adds trace_id to all log records.

    Ensures all logs have a trace_id field, even if not set via LoggerAdapter.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = "N/A"  # type: ignore
        return True


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure the root logger.

    Arguments override the environment:
    - BITREPLAY_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    - BITREPLAY_LOG_FORMAT: json, text (default: json)

    Logs go to stderr by default so CLI output on stdout stays machine-readable.
    """
    log_level = (level or os.getenv("BITREPLAY_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("BITREPLAY_LOG_FORMAT", "json")).lower()
    resolved = LEVELS.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.addFilter(TraceIDFilter())

    if log_format == "json":
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(trace_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [trace_id=%(trace_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


class TraceLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call extra fields with the trace_id."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str, trace_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger with optional trace_id for correlation.

    Args:
        name: Logger name (typically __name__)
        trace_id: Trace ID for correlating logs (typically a strategy or result id)

    Returns:
        LoggerAdapter with trace_id in extra fields
    """
    logger = logging.getLogger(name)
    return TraceLoggerAdapter(logger, {"trace_id": trace_id or "N/A"})
