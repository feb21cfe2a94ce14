"""
Execution engine for external tools.

Runs one process inside a working directory, captures its output in memory
and reports everything the caller needs to judge the outcome. A non-zero exit,
a failed launch, or a deadline overrun are all returned as data in
``ExecutionResult``; only caller cancellation propagates (after the child has
been killed and reaped).
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one process run. Built once per attempt and never reused."""
    exit_error: Optional[str]
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    returncode: Optional[int] = None
    output_path: Optional[str] = None
    output_exists: bool = False
    files: Tuple[str, ...] = field(default_factory=tuple)
    timed_out: bool = False

    @property
    def failed(self) -> bool:
        return self.exit_error is not None

    def to_dict(self):
        return {
            "exit_error": self.exit_error,
            "returncode": self.returncode,
            "duration": self.duration,
            "output_path": self.output_path,
            "output_exists": self.output_exists,
            "files": list(self.files),
            "timed_out": self.timed_out,
            "has_stdout": bool(self.stdout),
            "has_stderr": bool(self.stderr),
        }


class ProcessRunner(Protocol):
    """Contract of the execution engine."""

    async def run(
        self,
        tool: str,
        args: Sequence[str],
        workdir: PathLike,
        timeout: Optional[float] = None,
        expected_output: Optional[PathLike] = None,
    ) -> ExecutionResult:
        ...  # pragma: no cover - interface placeholder


def describe_exit(returncode: int) -> Optional[str]:
    """Exit error text for a return code; None for success."""
    if returncode == 0:
        return None
    if returncode < 0:
        return f"terminated by signal {-returncode}"
    return f"exit status {returncode}"


def inspect_workdir(workdir: PathLike, expected_output: Optional[PathLike]) -> Tuple[Optional[str], bool, Tuple[str, ...]]:
    """Resolve the expected output path, check it exists and list the directory."""
    base = Path(workdir)
    output_path = None
    exists = False
    if expected_output is not None:
        candidate = Path(expected_output)
        if not candidate.is_absolute():
            candidate = base / candidate
        output_path = str(candidate)
        exists = candidate.is_file()
    try:
        files = tuple(sorted(entry.name for entry in base.iterdir()))
    except OSError:
        files = ()
    return output_path, exists, files


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


class AsyncProcessRunner:
    """``ProcessRunner`` on top of ``asyncio.create_subprocess_exec``."""

    def __init__(self, encoding: str = "utf-8", env: Optional[dict] = None):
        self.encoding = encoding
        self.env = env

    def _decode(self, data: Optional[bytes]) -> str:
        if not data:
            return ""
        return data.decode(self.encoding, errors="replace")

    async def run(
        self,
        tool: str,
        args: Sequence[str],
        workdir: PathLike,
        timeout: Optional[float] = None,
        expected_output: Optional[PathLike] = None,
    ) -> ExecutionResult:
        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                tool,
                *args,
                cwd=str(workdir),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env,
            )
        except OSError as e:
            duration = time.monotonic() - start
            logger.debug(f"Failed to start {tool}: {e}")
            output_path, exists, files = inspect_workdir(workdir, expected_output)
            return ExecutionResult(
                exit_error=f"exec {tool}: {e}",
                duration=duration,
                output_path=output_path,
                output_exists=exists,
                files=files,
            )

        timed_out = False
        stdout = stderr = b""
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            timed_out = True
            await _kill(proc)
        except asyncio.CancelledError:
            await _kill(proc)
            raise
        duration = time.monotonic() - start

        if timed_out:
            exit_error = f"deadline exceeded after {duration:.2f}s: process killed"
        else:
            exit_error = describe_exit(proc.returncode)

        output_path, exists, files = inspect_workdir(workdir, expected_output)
        return ExecutionResult(
            exit_error=exit_error,
            stdout=self._decode(stdout),
            stderr=self._decode(stderr),
            duration=duration,
            returncode=proc.returncode,
            output_path=output_path,
            output_exists=exists,
            files=files,
            timed_out=timed_out,
        )


__all__ = [
    "ExecutionResult",
    "ProcessRunner",
    "AsyncProcessRunner",
    "describe_exit",
    "inspect_workdir",
]
