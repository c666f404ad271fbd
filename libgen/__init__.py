"""libgen -- scaffolds Effect-based TypeScript libraries into a monorepo.

Quick usage::

    from libgen import Executor, WorkspaceConfig, LibraryType

    config = WorkspaceConfig.detect("/path/to/workspace")
    executor = Executor(config)
    report = await executor.execute(LibraryType.CONTRACT, {"name": "order"})
    await executor.commit()
"""

from libgen.config import WorkspaceConfig
from libgen.domain import DependencyResolver, DomainResult
from libgen.errors import (
    FileSystemError,
    LibgenError,
    ResolutionError,
    ValidationError,
)
from libgen.executor import ExecutionReport, Executor
from libgen.metadata import LibraryMetadata, LibraryType, compute_metadata
from libgen.naming import NamingVariants, create_naming_variants

__version__ = "0.1.0"

__all__ = [
    "DependencyResolver",
    "DomainResult",
    "ExecutionReport",
    "Executor",
    "FileSystemError",
    "LibgenError",
    "LibraryMetadata",
    "LibraryType",
    "NamingVariants",
    "ResolutionError",
    "ValidationError",
    "WorkspaceConfig",
    "compute_metadata",
    "create_naming_variants",
]
