"""
Retry controller for signing attempts.

State machine::

    ATTEMPTING --success--------------------------> SUCCEEDED
    ATTEMPTING --fatal----------------------------> EXHAUSTED
    ATTEMPTING --retryable, attempt == max--------> EXHAUSTED
    ATTEMPTING --retryable, attempt < max--sleep--> ATTEMPTING (attempt + 1)

Only retryable (timestamp authority) failures are retried; the delay before
attempt ``n`` is ``(n - 1) * backoff_unit``. One deadline covers the whole
sequence: running out of time raises ``SignatureDeadlineError`` instead of
producing a classified outcome.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from ..errors import SignatureDeadlineError
from ..log import Logger, default_logger
from ..monitoring import MetricsRegistry, disabled_registry
from ..process.runner import ExecutionResult
from .classifier import AttemptOutcome, OutcomeKind, classify

# (attempt number, seconds left) -> result of one tool run
AttemptFn = Callable[[int, float], Awaitable[ExecutionResult]]
SleepFn = Callable[[float], Awaitable[None]]


class RetryState(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    backoff_unit: float = 1.0

    def delay_before(self, attempt: int) -> float:
        """Linear backoff: nothing before the first attempt, then 1, 2, ... units."""
        return max(attempt - 1, 0) * self.backoff_unit


@dataclass
class RetryResult:
    state: RetryState
    attempts: int
    outcome: Optional[AttemptOutcome] = None
    result: Optional[ExecutionResult] = None
    delays: List[float] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is RetryState.SUCCEEDED


class RetryController:
    """Drives attempts until success, a fatal failure, or the attempt limit."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        logger: Optional[Logger] = None,
        sleep: Optional[SleepFn] = None,
        clock: Optional[Callable[[], float]] = None,
        metrics: Optional[MetricsRegistry] = None,
        tool_name: str = "cryptcp",
    ):
        self.policy = policy or RetryPolicy()
        self.logger = logger or default_logger()
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic
        self.metrics = metrics or disabled_registry()
        self.tool_name = tool_name

    def _remaining(self, deadline: float) -> float:
        return deadline - self._clock()

    def _deadline_error(self, attempts: int, timeout: Optional[float], detail: str) -> SignatureDeadlineError:
        return SignatureDeadlineError(f"signing deadline exceeded {detail}", attempts=attempts, timeout=timeout)

    async def run(self, attempt_fn: AttemptFn, deadline: float, timeout: Optional[float] = None) -> RetryResult:
        """
        Run attempts sequentially.

        Args:
            attempt_fn: Runs one attempt; receives the attempt number and the time left
            deadline: Absolute time (on this controller's clock) the sequence must end by
            timeout: Original budget, for diagnostics only

        Raises:
            SignatureDeadlineError: If the deadline passes before a verdict
        """
        state = RetryState.ATTEMPTING
        attempt = 1
        delays: List[float] = []
        outcome: Optional[AttemptOutcome] = None
        result: Optional[ExecutionResult] = None
        max_attempts = self.policy.max_attempts

        while state is RetryState.ATTEMPTING:
            if attempt > 1:
                delay = self.policy.delay_before(attempt)
                self.logger.warning(
                    "retrying signature",
                    "attempt", attempt,
                    "maxAttempts", max_attempts,
                    "previousError", outcome.message if outcome else None,
                )
                remaining = self._remaining(deadline)
                if delay >= remaining:
                    await self._sleep(max(remaining, 0.0))
                    raise self._deadline_error(attempt - 1, timeout, "while waiting to retry")
                delays.append(delay)
                await self._sleep(delay)

            remaining = self._remaining(deadline)
            if remaining <= 0:
                raise self._deadline_error(attempt - 1, timeout, f"before attempt {attempt}")

            result = await attempt_fn(attempt, remaining)
            self._log_result(attempt, result)

            if result.timed_out:
                raise self._deadline_error(attempt, timeout, f"during attempt {attempt}")

            outcome = classify(result)
            self.metrics.observe_attempt(outcome.kind.value, result.duration)

            if outcome.kind is OutcomeKind.SUCCESS:
                self.logger.info(
                    "signature created successfully",
                    "attempt", attempt,
                    "signFile", result.output_path,
                )
                state = RetryState.SUCCEEDED
            elif attempt >= max_attempts:
                self.logger.error(
                    "all retry attempts exhausted",
                    "attempt", attempt,
                    "maxAttempts", max_attempts,
                    "lastError", outcome.message,
                )
                state = RetryState.EXHAUSTED
            elif outcome.kind is OutcomeKind.FATAL:
                self.logger.warning(
                    "non-HTTP error detected, stopping retries",
                    "attempt", attempt,
                    "error", outcome.message,
                )
                state = RetryState.EXHAUSTED
            else:
                self.logger.warning(
                    "detected HTTP error from TSP server, will retry",
                    "attempt", attempt,
                    "maxAttempts", max_attempts,
                    "error", outcome.message,
                )
                attempt += 1

        return RetryResult(state=state, attempts=attempt, outcome=outcome, result=result, delays=delays)

    def _log_result(self, attempt: int, result: ExecutionResult) -> None:
        self.logger.info(
            f"{self.tool_name} completed",
            "attempt", attempt,
            "duration", result.duration,
            "hasError", result.exit_error is not None,
            "hasStdout", bool(result.stdout),
            "hasStderr", bool(result.stderr),
        )
        if result.stdout or result.stderr:
            self.logger.debug(
                f"{self.tool_name} output",
                "attempt", attempt,
                "stdout", result.stdout,
                "stderr", result.stderr,
                "duration", result.duration,
            )


__all__ = [
    "RetryState",
    "RetryPolicy",
    "RetryResult",
    "RetryController",
]
