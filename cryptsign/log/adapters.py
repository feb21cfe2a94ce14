"""
Adapters from the structured logger contract to other logging backends.

``KeywordFieldLogger`` targets loggers whose level methods accept fields as
keyword arguments, e.g. a structlog bound logger::

    signer = DocumentSigner(config, logger=KeywordFieldLogger(structlog.get_logger()))

``RecordingLogger`` keeps entries in memory; tests use it to assert on events.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, Optional

from .base import pair_fields


def convert_value(value: Any) -> Any:
    """Map a field value onto a type structured backends serialise natively."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, BaseException):
        return f"{value.__class__.__name__}: {value}"
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [convert_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): convert_value(v) for k, v in value.items()}
    return repr(value)


class KeywordFieldLogger:
    """Adapter for loggers taking ``method(msg, **fields)``."""

    def __init__(self, logger: Any):
        if logger is None:
            raise ValueError("logger is required")
        self._logger = logger

    def _emit(self, method: str, msg: str, key_values) -> None:
        fields = {key: convert_value(value) for key, value in pair_fields(key_values)}
        getattr(self._logger, method)(msg, **fields)

    def debug(self, msg: str, *key_values: Any) -> None:
        self._emit("debug", msg, key_values)

    def info(self, msg: str, *key_values: Any) -> None:
        self._emit("info", msg, key_values)

    def warning(self, msg: str, *key_values: Any) -> None:
        self._emit("warning", msg, key_values)

    def error(self, msg: str, *key_values: Any) -> None:
        self._emit("error", msg, key_values)


@dataclass
class LogEntry:
    level: str
    message: str
    fields: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level,
            "message": self.message,
            "fields": self.fields,
        }


class RecordingLogger:
    """Thread-safe in-memory logger."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: List[LogEntry] = []

    def _record(self, level: str, msg: str, key_values) -> None:
        entry = LogEntry(level=level, message=msg, fields=dict(pair_fields(key_values)))
        with self._lock:
            self._entries.append(entry)

    def debug(self, msg: str, *key_values: Any) -> None:
        self._record("debug", msg, key_values)

    def info(self, msg: str, *key_values: Any) -> None:
        self._record("info", msg, key_values)

    def warning(self, msg: str, *key_values: Any) -> None:
        self._record("warning", msg, key_values)

    def error(self, msg: str, *key_values: Any) -> None:
        self._record("error", msg, key_values)

    @property
    def entries(self) -> List[LogEntry]:
        with self._lock:
            return list(self._entries)

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [e.message for e in self.entries if level is None or e.level == level]

    def find(self, message: str) -> List[LogEntry]:
        return [e for e in self.entries if e.message == message]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


__all__ = [
    "KeywordFieldLogger",
    "RecordingLogger",
    "LogEntry",
    "convert_value",
]
