"""Scripted stand-ins for cryptcp/certmgr and the backoff sleep."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from cryptsign.process.runner import ExecutionResult, inspect_workdir


@dataclass
class Step:
    """What the fake tool does on one invocation."""
    stdout: str = ""
    stderr: str = ""
    exit_error: Optional[str] = None
    write_output: bool = True
    content: Optional[bytes] = None
    delay: float = 0.0
    timed_out: bool = False


@dataclass
class Call:
    tool: str
    args: List[str]
    workdir: Path
    timeout: Optional[float]
    expected_output: Optional[str]


def success(**kwargs) -> Step:
    return Step(**kwargs)


def http_error() -> Step:
    return Step(
        stdout="[ErrorCode: 0x00000000]\nError: HTTP error 503 while contacting TSP",
        exit_error="exit status 1",
        write_output=False,
    )


def fatal_error() -> Step:
    return Step(
        stdout="Error: Can't find certificate",
        exit_error="exit status 1",
        write_output=False,
    )


class ScriptedRunner:
    """
    Plays back scripted steps; the last step repeats when the script runs out.

    A successful step writes ``signed:<payload>`` (or ``content``) to the
    expected output file inside the workspace.
    """

    def __init__(self, steps: Sequence[Step] = ()):
        self.steps = list(steps) or [Step()]
        self.calls: List[Call] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def run(self, tool, args, workdir, timeout=None, expected_output=None) -> ExecutionResult:
        index = min(len(self.calls), len(self.steps) - 1)
        step = self.steps[index]
        workdir = Path(workdir)
        self.calls.append(Call(tool, list(args), workdir, timeout, expected_output))

        if step.delay:
            await asyncio.sleep(step.delay)

        if step.write_output and expected_output is not None:
            payload = (workdir / "data.txt").read_bytes() if (workdir / "data.txt").exists() else b""
            content = step.content if step.content is not None else b"signed:" + payload
            (workdir / expected_output).write_bytes(content)

        output_path, exists, files = inspect_workdir(workdir, expected_output)
        return ExecutionResult(
            exit_error=step.exit_error,
            stdout=step.stdout,
            stderr=step.stderr,
            duration=0.01,
            returncode=0 if step.exit_error is None else 1,
            output_path=output_path,
            output_exists=exists,
            files=files,
            timed_out=step.timed_out,
        )


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
