"""Filesystem adapters: one port, a staged tree and a real disk backend."""

from __future__ import annotations

from pathlib import Path

from libgen.filesystem.adapter import AdapterMode, FileSystemAdapter
from libgen.filesystem.disk import DiskAdapter
from libgen.filesystem.tree import FileChange, StagedTree, TreeAdapter


def create_adapter(mode: AdapterMode, workspace_root: str | Path) -> FileSystemAdapter:
    """Build the adapter for *mode* rooted at *workspace_root*."""
    if mode == "tree":
        return TreeAdapter(StagedTree(workspace_root))
    if mode == "disk":
        return DiskAdapter(workspace_root)
    raise ValueError(f"Unknown adapter mode: {mode!r}")


__all__ = [
    "AdapterMode",
    "DiskAdapter",
    "FileChange",
    "FileSystemAdapter",
    "StagedTree",
    "TreeAdapter",
    "create_adapter",
]
