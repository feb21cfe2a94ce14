"""
Classification of a single signing attempt.

The signing tool has no structured error channel: it may exit 0 and still
print an error, or exit non-zero with the real reason on stdout. The verdict
therefore combines three signals:

 1. the process exit error must be absent,
 2. the expected signature file must exist,
 3. the lower-cased text ``"<exit error> <stdout> <stderr>"`` must not contain
    ``"error:"``.

All three make a success. Otherwise the same text is searched for
``"http error"``; a match means the timestamp authority was unreachable and
the attempt may be retried, anything else is fatal.

Known limitation: both markers are plain, unanchored substring checks, so
ordinary output that happens to contain them is misread.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..process.runner import ExecutionResult

ERROR_MARKER = "error:"
RETRYABLE_MARKER = "http error"


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True)
class AttemptOutcome:
    kind: OutcomeKind
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def retryable(self) -> bool:
        return self.kind is OutcomeKind.RETRYABLE


def combined_text(result: ExecutionResult) -> str:
    """Lower-cased text the markers are searched in."""
    exit_error = result.exit_error if result.exit_error is not None else "<nil>"
    return f"{exit_error} {result.stdout} {result.stderr}".lower()


def classify(result: ExecutionResult, expected_output: Optional[str] = None) -> AttemptOutcome:
    """Decide the outcome of one attempt. Pure: the same result always maps to the same outcome."""
    expected = expected_output or result.output_path
    text = combined_text(result)
    has_error_text = ERROR_MARKER in text

    if result.exit_error is None and result.output_exists and not has_error_text:
        return AttemptOutcome(OutcomeKind.SUCCESS, f"signature created: {expected}")

    if not result.output_exists:
        message = (
            f"signature file not created after {result.duration:.2f}s "
            f"(expected: {expected}, files: {list(result.files)}), "
            f"stdout: {result.stdout}, stderr: {result.stderr}"
        )
    elif has_error_text:
        message = (
            f"cryptcp reported error in output after {result.duration:.2f}s, "
            f"stdout: {result.stdout}, stderr: {result.stderr}"
        )
    else:
        message = (
            f"cryptcp failed after {result.duration:.2f}s: {result.exit_error}, "
            f"stdout: {result.stdout}, stderr: {result.stderr}"
        )

    if RETRYABLE_MARKER in text:
        return AttemptOutcome(OutcomeKind.RETRYABLE, message)
    return AttemptOutcome(OutcomeKind.FATAL, message)


__all__ = [
    "OutcomeKind",
    "AttemptOutcome",
    "classify",
    "combined_text",
    "ERROR_MARKER",
    "RETRYABLE_MARKER",
]
