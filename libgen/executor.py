"""Generator execution.

The :class:`Executor` runs one library generation end to end::

    Received -> Validated -> MetadataComputed -> Executing -> Completed
    Received -> ValidationFailed
    Executing -> Failed

Validation happens before any adapter call, so a rejected request never
mutates the workspace.  Errors are recorded as a terminal state and then
re-raised to the caller unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

from pydantic import BaseModel, ConfigDict

from libgen.config import WorkspaceConfig
from libgen.errors import ValidationError
from libgen.filesystem import FileChange, FileSystemAdapter, StagedTree, TreeAdapter
from libgen.logging import get_logger
from libgen.metadata import LibraryMetadata, LibraryType, compute_metadata
from libgen.platform import resolve_capabilities
from libgen.scaffold.common import GeneratorResult, workspace_package
from libgen.scaffold.contract_gen import ContractOptions, generate_contract
from libgen.scaffold.data_access_gen import DataAccessOptions, generate_data_access
from libgen.scaffold.feature_gen import FeatureOptions, generate_feature
from libgen.scaffold.infra_gen import InfraOptions, detect_infra_concern, generate_infra, provider_for_infra
from libgen.scaffold.infrastructure import generate_infrastructure_files
from libgen.scaffold.provider_gen import ProviderOptions, generate_provider
from libgen.scaffold.templates import TemplateRenderer
from libgen.validation import GeneratorInput, validate_options

logger = get_logger("executor")

CoreGenerator = Callable[..., Awaitable[GeneratorResult]]

GENERATORS: Mapping[LibraryType, tuple[type[BaseModel], CoreGenerator]] = {
    LibraryType.CONTRACT: (ContractOptions, generate_contract),
    LibraryType.DATA_ACCESS: (DataAccessOptions, generate_data_access),
    LibraryType.FEATURE: (FeatureOptions, generate_feature),
    LibraryType.INFRA: (InfraOptions, generate_infra),
    LibraryType.PROVIDER: (ProviderOptions, generate_provider),
}

_COMMON_FIELDS = {"name", "description", "tags", "dry_run"}


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class ExecutionState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    METADATA_COMPUTED = "metadata-computed"
    EXECUTING = "executing"
    COMPLETED = "completed"
    VALIDATION_FAILED = "validation-failed"
    FAILED = "failed"


_ALLOWED: Mapping[ExecutionState, frozenset[ExecutionState]] = {
    ExecutionState.RECEIVED: frozenset({ExecutionState.VALIDATED, ExecutionState.VALIDATION_FAILED}),
    ExecutionState.VALIDATED: frozenset({ExecutionState.METADATA_COMPUTED, ExecutionState.VALIDATION_FAILED}),
    ExecutionState.METADATA_COMPUTED: frozenset({ExecutionState.EXECUTING}),
    ExecutionState.EXECUTING: frozenset({ExecutionState.COMPLETED, ExecutionState.FAILED}),
}

TERMINAL_STATES = frozenset({
    ExecutionState.COMPLETED, ExecutionState.VALIDATION_FAILED, ExecutionState.FAILED,
})


class Invocation:
    """Tracks the state transitions of one execution."""

    def __init__(self, library_type: str) -> None:
        self.library_type = library_type
        self.transitions: list[ExecutionState] = [ExecutionState.RECEIVED]

    @property
    def state(self) -> ExecutionState:
        return self.transitions[-1]

    def advance(self, state: ExecutionState) -> None:
        if state not in _ALLOWED.get(self.state, frozenset()):
            raise RuntimeError(f"Illegal transition {self.state.value} -> {state.value}")
        logger.debug("%s: %s -> %s", self.library_type, self.state.value, state.value)
        self.transitions.append(state)


class ExecutionReport(BaseModel):
    """Uniform outcome of one successful execution."""

    model_config = ConfigDict(frozen=True)

    library_type: LibraryType
    result: GeneratorResult
    transitions: tuple[ExecutionState, ...]
    dry_run: bool = False
    changes: tuple[FileChange, ...] = ()

    @property
    def package_name(self) -> str:
        return self.result.package_name

    @property
    def files_generated(self) -> tuple[str, ...]:
        return self.result.files_generated


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


def workspace_dependencies(
    library_type: LibraryType, metadata: LibraryMetadata, options: GeneratorInput
) -> list[str]:
    """Workspace packages the generated sources import."""
    dependencies: list[str] = []
    if library_type == LibraryType.CONTRACT:
        dependencies.append(getattr(options, "types_database_package", None))
    elif library_type == LibraryType.DATA_ACCESS:
        dependencies.append(getattr(options, "contract_library", None))
        dependencies.append(workspace_package(metadata, "infra", "database"))
        if getattr(options, "include_cache", False):
            dependencies.append(workspace_package(metadata, "infra", "cache"))
    elif library_type == LibraryType.FEATURE:
        dependencies.append(getattr(options, "data_access_library", None))
        dependencies.append(workspace_package(metadata, "infra", "pubsub"))
        dependencies.append(workspace_package(metadata, "infra", "queue"))
    elif library_type == LibraryType.INFRA:
        provider = provider_for_infra(detect_infra_concern(metadata.file_name))
        if provider:
            dependencies.append(workspace_package(metadata, "provider", provider))
    return [dependency for dependency in dependencies if dependency]


class Executor:
    """Validates a request, computes metadata and runs the matching generator.

    Args:
        config: Workspace defaults, passed explicitly rather than read from
            global state.
        adapter: Filesystem adapter; defaults to a staged tree over the
            workspace root.
        renderer: Optional template renderer override.
    """

    def __init__(
        self,
        config: WorkspaceConfig,
        adapter: FileSystemAdapter | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.adapter = adapter or TreeAdapter(StagedTree(config.workspace_root))
        self.renderer = renderer
        self.last_transitions: list[ExecutionState] = []

    def _adapter_for(self, dry_run: bool) -> FileSystemAdapter:
        if not dry_run:
            return self.adapter
        # Dry runs stage into their own tree, layered over the executor's
        # staged tree when there is one; commit() never sees them.
        base = self.adapter.tree if isinstance(self.adapter, TreeAdapter) else None
        return TreeAdapter(StagedTree(self.adapter.get_workspace_root(), base=base))

    async def execute(
        self, library_type: LibraryType | str, raw_options: Mapping[str, Any] | None
    ) -> ExecutionReport:
        """Run one generator.

        Raises:
            ValidationError: The options were rejected; nothing was written.
            FileSystemError: A write failed part-way; earlier writes remain.
        """
        invocation = Invocation(str(library_type))
        self.last_transitions = invocation.transitions

        try:
            options = validate_options(library_type, raw_options)
        except ValidationError:
            invocation.advance(ExecutionState.VALIDATION_FAILED)
            raise
        invocation.advance(ExecutionState.VALIDATED)
        library_type = LibraryType(library_type)

        try:
            metadata = compute_metadata(
                options.name,
                library_type,
                self.config,
                description=options.description,
                tags=options.tags,
            )
        except ValidationError:
            invocation.advance(ExecutionState.VALIDATION_FAILED)
            raise
        invocation.advance(ExecutionState.METADATA_COMPUTED)

        options_model, generator = GENERATORS[library_type]
        flags = options.model_dump(exclude=_COMMON_FIELDS, exclude_none=True)
        generator_options = options_model(metadata=metadata, **flags)
        capabilities = resolve_capabilities(library_type, register_project=self.config.is_nx)
        adapter = self._adapter_for(options.dry_run)

        invocation.advance(ExecutionState.EXECUTING)
        try:
            project_files = await generate_infrastructure_files(
                adapter,
                metadata,
                self.config,
                capabilities,
                dependencies=workspace_dependencies(library_type, metadata, options),
                renderer=self.renderer,
            )
            result = await generator(adapter, generator_options, self.renderer)
        except Exception:
            invocation.advance(ExecutionState.FAILED)
            raise
        invocation.advance(ExecutionState.COMPLETED)

        result = result.with_files_prepended(project_files)
        logger.info("Generated %s (%d files)", result.package_name, len(result.files_generated))

        changes: tuple[FileChange, ...] = ()
        if isinstance(adapter, TreeAdapter):
            generated = set(result.files_generated)
            changes = tuple(change for change in adapter.changes() if change.path in generated)
        return ExecutionReport(
            library_type=library_type,
            result=result,
            transitions=tuple(invocation.transitions),
            dry_run=options.dry_run,
            changes=changes,
        )

    async def commit(self) -> list[str]:
        """Flush staged changes to disk when running on a staged tree."""
        if isinstance(self.adapter, TreeAdapter):
            return await self.adapter.commit()
        return []
