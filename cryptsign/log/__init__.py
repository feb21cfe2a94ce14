"""
Logging module initialization
"""

from .base import (
    Logger,
    pair_fields,
    mask_args,
    format_fields,
    SENSITIVE_KEYS,
    REDACTED,
)
from .stdlib import StdlibLogger, DEFAULT_LOGGER_NAME
from .adapters import KeywordFieldLogger, RecordingLogger, LogEntry, convert_value


def default_logger() -> Logger:
    """Logger used when the caller does not provide one."""
    return StdlibLogger()


__all__ = [
    "Logger",
    "StdlibLogger",
    "KeywordFieldLogger",
    "RecordingLogger",
    "LogEntry",
    "default_logger",
    "pair_fields",
    "mask_args",
    "format_fields",
    "convert_value",
    "SENSITIVE_KEYS",
    "REDACTED",
    "DEFAULT_LOGGER_NAME",
]
