"""
Structured logger contract.

The signer never talks to a logging backend directly. It calls one of four
severity methods with a message followed by alternating keys and values::

    logger.info("cryptcp starting", "thumbprint", thumbprint, "workDir", path)

Backends are plugged in by passing an implementation to the constructor.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Protocol, Sequence, Tuple, runtime_checkable


# Field names whose values are credentials
SENSITIVE_KEYS = frozenset({"pin", "newpin", "password", "secret", "passphrase"})

# Tool flags whose following argument is a credential
SENSITIVE_FLAGS = frozenset({"-pin", "-newpin"})

REDACTED = "***"


@runtime_checkable
class Logger(Protocol):
    """Four-level logger accepting a message plus ordered key/value pairs."""

    def debug(self, msg: str, *key_values: Any) -> None:
        ...  # pragma: no cover - interface placeholder

    def info(self, msg: str, *key_values: Any) -> None:
        ...  # pragma: no cover - interface placeholder

    def warning(self, msg: str, *key_values: Any) -> None:
        ...  # pragma: no cover - interface placeholder

    def error(self, msg: str, *key_values: Any) -> None:
        ...  # pragma: no cover - interface placeholder


def pair_fields(key_values: Sequence[Any]) -> List[Tuple[str, Any]]:
    """
    Turn ``("k1", v1, "k2", v2, ...)`` into ordered pairs.

    A trailing key without a value is dropped, pairs with a non-string key
    are skipped, and credential values are replaced with ``***``.
    """
    pairs: List[Tuple[str, Any]] = []
    for i in range(0, len(key_values) - 1, 2):
        key = key_values[i]
        if not isinstance(key, str):
            continue
        value = key_values[i + 1]
        if key.lower() in SENSITIVE_KEYS:
            value = REDACTED
        pairs.append((key, value))
    return pairs


def mask_args(args: Iterable[str]) -> List[str]:
    """Copy of an argument vector with every credential argument masked."""
    masked: List[str] = []
    hide_next = False
    for arg in args:
        if hide_next:
            masked.append(REDACTED)
            hide_next = False
            continue
        masked.append(arg)
        if arg.lower() in SENSITIVE_FLAGS:
            hide_next = True
    return masked


def format_fields(pairs: Sequence[Tuple[str, Any]]) -> str:
    """Render pairs as `` key=value`` suffixes for plain-text handlers."""
    return "".join(f" {key}={value}" for key, value in pairs)


__all__ = [
    "Logger",
    "pair_fields",
    "mask_args",
    "format_fields",
    "SENSITIVE_KEYS",
    "SENSITIVE_FLAGS",
    "REDACTED",
]
