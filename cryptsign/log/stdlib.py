"""Default logger backed by the standard library ``logging`` module."""

import logging
from typing import Any, Optional

from .base import format_fields, pair_fields


DEFAULT_LOGGER_NAME = "cryptsign"


class StdlibLogger:
    """
    Forward structured events to a ``logging.Logger``.

    Fields are appended to the message as ``key=value`` and also attached to
    the record as ``record.fields`` (a dict) for structured handlers.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _log(self, level: int, msg: str, key_values) -> None:
        if not self._logger.isEnabledFor(level):
            return
        pairs = pair_fields(key_values)
        self._logger.log(level, msg + format_fields(pairs), extra={"fields": dict(pairs)})

    def debug(self, msg: str, *key_values: Any) -> None:
        self._log(logging.DEBUG, msg, key_values)

    def info(self, msg: str, *key_values: Any) -> None:
        self._log(logging.INFO, msg, key_values)

    def warning(self, msg: str, *key_values: Any) -> None:
        self._log(logging.WARNING, msg, key_values)

    def error(self, msg: str, *key_values: Any) -> None:
        self._log(logging.ERROR, msg, key_values)
