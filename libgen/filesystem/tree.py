"""Staged, in-memory filesystem backend.

A :class:`StagedTree` records every intended mutation without touching the
disk.  The staged changes can be listed, diffed against what is currently on
disk, discarded wholesale with :meth:`StagedTree.rollback` or flushed with
:meth:`StagedTree.commit`.  Reads and existence checks fall through to a
base tree, or to the real filesystem, for anything that has not been staged,
so generators see a consistent merged view.
"""

from __future__ import annotations

import asyncio
import difflib
from pathlib import Path, PurePosixPath
from typing import Literal

from pydantic import BaseModel, ConfigDict

from libgen.errors import DirectoryCreationError, FileReadError, FileWriteError
from libgen.filesystem.adapter import FileSystemAdapter
from libgen.logging import get_logger

logger = get_logger("filesystem.tree")


class FileChange(BaseModel):
    """A single staged file mutation."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: Literal["create", "update"]
    content: str


class StagedTree:
    """In-memory record of staged files and directories over a workspace root.

    Anything not staged here is looked up in *base* when given (another
    staged tree), otherwise on disk.  Only this tree's own changes are ever
    committed.
    """

    def __init__(self, root: str | Path, base: StagedTree | None = None) -> None:
        self.root = Path(root).resolve()
        self.base = base
        self._files: dict[str, FileChange] = {}
        self._directories: set[str] = set()

    # -- Mutation ---------------------------------------------------------

    def write(self, path: str, content: str) -> None:
        if self.is_dir(path):
            raise IsADirectoryError(f"{path} is a directory")
        previous = self._files.get(path)
        if previous is not None:
            kind = previous.kind
        else:
            kind = "update" if self.is_file(path) else "create"
        self._files[path] = FileChange(path=path, kind=kind, content=content)
        self._add_parents(path)

    def mkdir(self, path: str) -> None:
        if self.is_file(path):
            raise FileExistsError(f"{path} exists and is a file")
        if path:
            self._directories.add(path)
            self._add_parents(path)

    def _add_parents(self, path: str) -> None:
        for parent in PurePosixPath(path).parents:
            if str(parent) != ".":
                self._directories.add(str(parent))

    # -- Queries ----------------------------------------------------------

    def is_file(self, path: str) -> bool:
        if path in self._files:
            return True
        if path in self._directories:
            return False
        if self.base is not None:
            return self.base.is_file(path)
        return (self.root / path).is_file()

    def is_dir(self, path: str) -> bool:
        if path in self._directories:
            return True
        if path in self._files:
            return False
        if self.base is not None:
            return self.base.is_dir(path)
        return (self.root / path).is_dir()

    def read(self, path: str) -> str:
        staged = self._files.get(path)
        if staged is not None:
            return staged.content
        if self.base is not None:
            return self.base.read(path)
        return (self.root / path).read_text(encoding="utf-8")

    def exists(self, path: str) -> bool:
        if not path:
            return True
        if path in self._files or path in self._directories:
            return True
        if self.base is not None:
            return self.base.exists(path)
        return (self.root / path).exists()

    def changes(self) -> list[FileChange]:
        """Staged file changes in the order they were first written."""
        return list(self._files.values())

    @property
    def directories(self) -> list[str]:
        return sorted(self._directories)

    def _content_below(self, path: str) -> str:
        if self.base is not None:
            return self.base.read(path) if self.base.is_file(path) else ""
        on_disk = self.root / path
        return on_disk.read_text(encoding="utf-8") if on_disk.is_file() else ""

    def diff(self) -> str:
        """Unified diff of every staged change against the content below it."""
        chunks: list[str] = []
        for change in self._files.values():
            before = self._content_below(change.path)
            if before == change.content:
                continue
            chunks.extend(
                difflib.unified_diff(
                    before.splitlines(keepends=True),
                    change.content.splitlines(keepends=True),
                    fromfile="/dev/null" if change.kind == "create" else f"a/{change.path}",
                    tofile=f"b/{change.path}",
                )
            )
        return "".join(chunks)

    # -- Lifecycle --------------------------------------------------------

    def rollback(self) -> None:
        """Discard every staged change."""
        logger.debug("Rolling back %d staged file(s)", len(self._files))
        self._files.clear()
        self._directories.clear()

    def commit(self) -> list[str]:
        """Write every staged change to disk and clear the stage.

        Returns:
            The workspace-relative paths that were written.
        """
        for directory in sorted(self._directories):
            (self.root / directory).mkdir(parents=True, exist_ok=True)
        written: list[str] = []
        for change in self._files.values():
            target = self.root / change.path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(change.content, encoding="utf-8")
            written.append(change.path)
        logger.debug("Committed %d staged file(s) to %s", len(written), self.root)
        self._files.clear()
        self._directories.clear()
        return written


class TreeAdapter(FileSystemAdapter):
    """Adapter over a :class:`StagedTree`.  Nothing reaches disk until commit."""

    mode = "tree"

    def __init__(self, tree: StagedTree | str | Path) -> None:
        if not isinstance(tree, StagedTree):
            tree = StagedTree(tree)
        super().__init__(tree.root)
        self.tree = tree

    async def write_file(self, path: str, content: str) -> None:
        relative = self.normalize(path)
        try:
            self.tree.write(relative, content)
        except OSError as exc:
            raise FileWriteError(relative, str(exc)) from exc

    async def make_directory(self, path: str) -> None:
        relative = self.normalize(path)
        try:
            self.tree.mkdir(relative)
        except OSError as exc:
            raise DirectoryCreationError(relative, str(exc)) from exc

    async def exists(self, path: str) -> bool:
        return self.tree.exists(self.normalize(path))

    async def read_file(self, path: str) -> str:
        relative = self.normalize(path)
        try:
            return self.tree.read(relative)
        except OSError as exc:
            raise FileReadError(relative, str(exc)) from exc

    # -- Staging controls -------------------------------------------------

    def changes(self) -> list[FileChange]:
        return self.tree.changes()

    def diff(self) -> str:
        return self.tree.diff()

    def rollback(self) -> None:
        self.tree.rollback()

    async def commit(self) -> list[str]:
        try:
            return await asyncio.to_thread(self.tree.commit)
        except OSError as exc:
            raise FileWriteError(str(self.tree.root), str(exc)) from exc
