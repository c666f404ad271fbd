"""Shared pytest fixtures for the libgen test suite.

Provides reusable fixtures for:
- Temporary workspace directories and workspace configs
- Staged-tree adapters and a recording adapter spy
- Library metadata built from a name and type
- Restoring the libgen logger after configure_logging()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import pytest

from libgen.config import WorkspaceConfig
from libgen.errors import FileWriteError
from libgen.filesystem import StagedTree, TreeAdapter
from libgen.metadata import LibraryMetadata, LibraryType, compute_metadata
from libgen.scaffold.common import GeneratorResult


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class RecordingAdapter(TreeAdapter):
    """Staged-tree adapter that records every port call in order."""

    def __init__(self, root: str | Path) -> None:
        super().__init__(StagedTree(root))
        self.calls: list[tuple[str, str]] = []

    async def write_file(self, path: str, content: str) -> None:
        self.calls.append(("write_file", path))
        await super().write_file(path, content)

    async def make_directory(self, path: str) -> None:
        self.calls.append(("make_directory", path))
        await super().make_directory(path)

    async def exists(self, path: str) -> bool:
        self.calls.append(("exists", path))
        return await super().exists(path)

    @property
    def writes(self) -> list[str]:
        return [path for operation, path in self.calls if operation == "write_file"]

    @property
    def directories(self) -> list[str]:
        return [path for operation, path in self.calls if operation == "make_directory"]

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] != "exists"]


class FailingAdapter(RecordingAdapter):
    """Recording adapter whose writes fail below a given path prefix."""

    def __init__(self, root: str | Path, fail_prefix: str) -> None:
        super().__init__(root)
        self.fail_prefix = fail_prefix

    async def write_file(self, path: str, content: str) -> None:
        if path.startswith(self.fail_prefix):
            self.calls.append(("write_file", path))
            raise FileWriteError(path, "disk full")
        await super().write_file(path, content)


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty workspace root (auto-cleanup)."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def config(workspace: Path) -> WorkspaceConfig:
    """Standalone workspace with the default ``@myorg`` scope."""
    return WorkspaceConfig(workspace_root=workspace)


@pytest.fixture
def nx_config(workspace: Path) -> WorkspaceConfig:
    return WorkspaceConfig(workspace_root=workspace, workspace_type="nx")


@pytest.fixture
def tree_adapter(workspace: Path) -> TreeAdapter:
    return TreeAdapter(StagedTree(workspace))


@pytest.fixture
def recording_adapter(workspace: Path) -> RecordingAdapter:
    return RecordingAdapter(workspace)


@pytest.fixture
def failing_adapter_factory(workspace: Path) -> Callable[[str], FailingAdapter]:
    def factory(fail_prefix: str) -> FailingAdapter:
        return FailingAdapter(workspace, fail_prefix)

    return factory


# ---------------------------------------------------------------------------
# Metadata helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_metadata(config: WorkspaceConfig) -> Callable[..., LibraryMetadata]:
    """Build metadata for ``name`` and ``library_type`` against the default config."""

    def factory(name: str, library_type: LibraryType | str, **kwargs) -> LibraryMetadata:
        return compute_metadata(name, library_type, config, **kwargs)

    return factory


@pytest.fixture
def relative_paths() -> Callable[[GeneratorResult], list[str]]:
    """Return a result's generated paths relative to its project root."""

    def strip(result: GeneratorResult) -> list[str]:
        prefix = result.project_root + "/"
        return [path[len(prefix):] if path.startswith(prefix) else path for path in result.files_generated]

    return strip


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture
def restore_logging():
    """Undo configure_logging() so handlers don't leak between tests."""
    logger = logging.getLogger("libgen")
    handlers = list(logger.handlers)
    level, propagate = logger.level, logger.propagate
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate
