"""The filesystem port every generator writes through.

Generators never touch the disk directly.  They receive a
:class:`FileSystemAdapter` and stay agnostic of whether it is backed by a
staged, in-memory tree (:class:`~libgen.filesystem.tree.TreeAdapter`) or the
real filesystem (:class:`~libgen.filesystem.disk.DiskAdapter`).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Literal

AdapterMode = Literal["tree", "disk"]


class FileSystemAdapter(ABC):
    """Abstract port over a workspace's files.

    Paths are workspace-relative POSIX strings.  Absolute paths located under
    the workspace root are accepted and normalised.
    """

    mode: AdapterMode

    def __init__(self, workspace_root: str | Path) -> None:
        self._workspace_root = Path(workspace_root).resolve()

    def get_workspace_root(self) -> Path:
        return self._workspace_root

    def normalize(self, path: str | Path) -> str:
        """Return *path* as a clean workspace-relative POSIX string."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.resolve().relative_to(self._workspace_root)
            except ValueError as exc:
                raise ValueError(
                    f"Path {path} is outside workspace {self._workspace_root}"
                ) from exc
        posix = PurePosixPath(candidate.as_posix())
        if ".." in posix.parts:
            raise ValueError(f"Path {path} escapes the workspace root")
        normalized = posix.as_posix()
        return "" if normalized == "." else normalized

    def absolute(self, path: str | Path) -> Path:
        return self._workspace_root / self.normalize(path)

    # -- Port -------------------------------------------------------------

    @abstractmethod
    async def write_file(self, path: str, content: str) -> None:
        """Create or replace a file.

        Raises:
            FileWriteError: If the content could not be written.
        """

    @abstractmethod
    async def make_directory(self, path: str) -> None:
        """Create a directory and its parents.  Existing directories are fine.

        Raises:
            DirectoryCreationError: If the directory could not be created.
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return ``True`` if a file or directory exists at *path*."""

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Return the text content of *path*.

        Raises:
            FileReadError: If the file is missing or unreadable.
        """
