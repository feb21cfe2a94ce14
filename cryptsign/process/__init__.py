"""
Process execution module initialization
"""

from .runner import (
    ExecutionResult,
    ProcessRunner,
    AsyncProcessRunner,
    describe_exit,
    inspect_workdir,
)

__all__ = [
    "ExecutionResult",
    "ProcessRunner",
    "AsyncProcessRunner",
    "describe_exit",
    "inspect_workdir",
]
