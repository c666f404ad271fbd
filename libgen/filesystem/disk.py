"""Real-filesystem backend.

Every blocking call runs in a worker thread via :func:`asyncio.to_thread` so
the event loop stays free while batches of files are written.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from libgen.errors import DirectoryCreationError, FileReadError, FileWriteError
from libgen.filesystem.adapter import FileSystemAdapter
from libgen.logging import get_logger

logger = get_logger("filesystem.disk")


def _write_file(path: Path, content: str) -> None:
    """Synchronous file write (called via ``asyncio.to_thread``)."""
    path.write_text(content, encoding="utf-8")


def _make_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


class DiskAdapter(FileSystemAdapter):
    """Adapter writing straight to the workspace on disk.

    There is no rollback: a failure part-way through a generator leaves the
    files written so far in place.
    """

    mode = "disk"

    async def write_file(self, path: str, content: str) -> None:
        relative = self.normalize(path)
        try:
            await asyncio.to_thread(_write_file, self.absolute(relative), content)
        except OSError as exc:
            raise FileWriteError(relative, exc.strerror or str(exc)) from exc
        logger.debug("Wrote %s", relative)

    async def make_directory(self, path: str) -> None:
        relative = self.normalize(path)
        try:
            await asyncio.to_thread(_make_directory, self.absolute(relative))
        except OSError as exc:
            raise DirectoryCreationError(relative, exc.strerror or str(exc)) from exc

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self.absolute(path).exists)

    async def read_file(self, path: str) -> str:
        relative = self.normalize(path)
        try:
            return await asyncio.to_thread(self.absolute(relative).read_text, encoding="utf-8")
        except OSError as exc:
            raise FileReadError(relative, exc.strerror or str(exc)) from exc
