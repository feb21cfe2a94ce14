"""
Per-request workspaces.

Every signing request gets its own freshly created temporary directory holding
the payload under a fixed file name. The signing tool runs with that directory
as its working directory, so concurrent requests never touch the same files.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, List, Optional

from ..errors import WorkspaceError

logger = logging.getLogger(__name__)

DATA_FILE_NAME = "data.txt"
WORKSPACE_PREFIX = "cprov_"


@dataclass(frozen=True)
class Workspace:
    """An exclusively owned directory with one input file."""
    path: Path
    data_file: str = DATA_FILE_NAME

    @property
    def data_path(self) -> Path:
        return self.path / self.data_file

    def output_name(self, extension: str) -> str:
        """Name the signing tool gives the signature: input name plus extension."""
        return self.data_file + extension

    def output_path(self, extension: str) -> Path:
        return self.path / self.output_name(extension)

    def list_files(self) -> List[str]:
        try:
            return sorted(entry.name for entry in self.path.iterdir())
        except OSError:
            return []

    def read_output(self, extension: str) -> bytes:
        path = self.output_path(extension)
        try:
            return path.read_bytes()
        except OSError as e:
            raise WorkspaceError(f"read signature file {path}: {e}", path=str(path)) from e


class WorkspaceManager:
    """Creates and destroys workspaces under ``tmp_dir`` (system temp dir by default)."""

    def __init__(self, tmp_dir: Optional[str] = None, prefix: str = WORKSPACE_PREFIX,
                 data_file: str = DATA_FILE_NAME):
        self.tmp_dir = tmp_dir
        self.prefix = prefix
        self.data_file = data_file

    def acquire(self, data: bytes) -> Workspace:
        """
        Create a new workspace and write the payload into it.

        Raises:
            WorkspaceError: If the directory or the input file cannot be created
        """
        try:
            path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.tmp_dir))
        except OSError as e:
            raise WorkspaceError(f"create work directory: {e}", path=self.tmp_dir) from e

        workspace = Workspace(path=path, data_file=self.data_file)
        try:
            fd = os.open(workspace.data_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError as e:
            shutil.rmtree(path, ignore_errors=True)
            raise WorkspaceError(f"write data file: {e}", path=str(workspace.data_path)) from e

        logger.debug(f"Workspace created: {path}")
        return workspace

    def release(self, workspace: Workspace) -> None:
        """
        Remove the workspace directory and everything in it.

        Raises:
            WorkspaceError: If the directory exists but cannot be removed
        """
        try:
            shutil.rmtree(workspace.path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise WorkspaceError(f"remove work directory: {e}", path=str(workspace.path)) from e
        logger.debug(f"Workspace removed: {workspace.path}")

    @asynccontextmanager
    async def workspace(self, data: bytes) -> AsyncIterator[Workspace]:
        """
        Scoped workspace: released on return, error and cancellation.

        Directory creation, the payload write and removal run in the default
        executor so a slow disk does not stall other requests. If the body
        failed, a release failure is logged and the body's error propagates;
        otherwise the release failure is raised.
        """
        loop = asyncio.get_running_loop()
        acquiring = loop.run_in_executor(None, self.acquire, data)
        try:
            workspace = await asyncio.shield(acquiring)
        except asyncio.CancelledError:
            # The worker thread still finishes creating the directory
            acquiring.add_done_callback(self._discard)
            raise

        try:
            yield workspace
        except BaseException:
            try:
                await loop.run_in_executor(None, self.release, workspace)
            except WorkspaceError as e:
                logger.error(f"Failed to remove workspace after error: {e}")
            raise
        await loop.run_in_executor(None, self.release, workspace)

    def _discard(self, acquiring: "asyncio.Future[Workspace]") -> None:
        if acquiring.cancelled() or acquiring.exception() is not None:
            return
        try:
            self.release(acquiring.result())
        except WorkspaceError as e:
            logger.error(f"Failed to remove abandoned workspace: {e}")


__all__ = [
    "Workspace",
    "WorkspaceManager",
    "DATA_FILE_NAME",
    "WORKSPACE_PREFIX",
]
