"""Composite (domain) generation.

A domain request produces three wired libraries: a contract, a data-access
library implementing it and a feature library built on the data-access
library.  Before those run, every upstream provider and infrastructure
library the generated code imports is checked for and generated when absent.

The existence check and the generation that follows are not atomic.  Two
concurrent domain runs that share upstream libraries can both see one as
missing and both generate it; the last writer wins and, because generation
is a deterministic full overwrite, the result is the same files.  Callers
that need stronger guarantees must serialise domain runs themselves.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict

from libgen.errors import LibgenError, ResolutionError, ValidationError
from libgen.executor import ExecutionReport, Executor
from libgen.logging import get_logger
from libgen.metadata import LibraryType
from libgen.naming import to_file_case, to_title
from libgen.utils import dedupe, print_info
from libgen.validation import validate_domain_options

logger = get_logger("domain")

ProgressCallback = Callable[[str], None]


class DependencyDescriptor(BaseModel):
    """An upstream library a composite type requires, with its default options."""

    model_config = ConfigDict(frozen=True)

    library_type: LibraryType
    name: str
    options: dict[str, Any]

    @property
    def identifier(self) -> str:
        return f"{self.library_type.value}:{self.name}"


def _infra(name: str, description: str, tags: str) -> DependencyDescriptor:
    return DependencyDescriptor(
        library_type=LibraryType.INFRA,
        name=name,
        options={
            "description": description,
            "tags": tags,
            "platform": "node",
            "include_client_server": True,
        },
    )


def _provider(name: str, service: str, description: str, tags: str) -> DependencyDescriptor:
    return DependencyDescriptor(
        library_type=LibraryType.PROVIDER,
        name=name,
        options={
            "external_service": service,
            "description": description,
            "tags": tags,
            "platform": "node",
        },
    )


# Order matters: providers before the infra libraries that consume them.
DEPENDENCY_DESCRIPTORS: Mapping[str, tuple[DependencyDescriptor, ...]] = MappingProxyType({
    "domain": (
        _provider("kysely", "Kysely", "Kysely provider for type-safe database queries with migrations",
                  "provider,database,kysely"),
        _provider("redis", "Redis", "Redis provider for cache, queue, and pubsub operations",
                  "provider,redis,cache,queue,pubsub"),
        _infra("database", "Database orchestration infrastructure (coordinates database providers like Kysely)",
               "infra,database,orchestration"),
        _infra("cache", "Cache infrastructure built on Effect primitives", "infra,cache"),
        _infra("observability", "Observability infrastructure for tracing, logging and metrics",
               "infra,observability"),
        _infra("rpc", "RPC infrastructure with transport, middleware and client", "infra,rpc"),
        _infra("pubsub", "Publish/subscribe infrastructure for domain events", "infra,pubsub"),
        _infra("queue", "Job queue infrastructure for background work", "infra,queue"),
    ),
})


class DomainResult(BaseModel):
    """Everything a domain request generated, in generation order."""

    model_config = ConfigDict(frozen=True)

    upstream: tuple[ExecutionReport, ...]
    contract: ExecutionReport
    data_access: ExecutionReport
    feature: ExecutionReport

    @property
    def reports(self) -> list[ExecutionReport]:
        return [*self.upstream, self.contract, self.data_access, self.feature]

    @property
    def files_generated(self) -> list[str]:
        return [path for report in self.reports for path in report.files_generated]


class DependencyResolver:
    """Backfills upstream libraries and runs the three domain generators in order.

    Args:
        executor: Executor whose adapter and workspace config are used for
            every stage.
        on_progress: Receives one human-readable line per stage.  Defaults
            to printing on the shared console.
    """

    def __init__(self, executor: Executor, on_progress: ProgressCallback | None = None) -> None:
        self.executor = executor
        self.on_progress = on_progress or print_info

    def _progress(self, message: str) -> None:
        logger.debug(message)
        self.on_progress(message)

    def descriptors(self, composite: str) -> tuple[DependencyDescriptor, ...]:
        try:
            return DEPENDENCY_DESCRIPTORS[composite]
        except KeyError:
            raise ValidationError.single(
                "composite", f"unknown composite type {composite!r}", subject="request"
            ) from None

    def library_path(self, descriptor: DependencyDescriptor) -> str:
        return self.executor.config.library_root(descriptor.library_type.value, to_file_case(descriptor.name))

    async def missing(self, composite: str = "domain") -> list[DependencyDescriptor]:
        """Upstream libraries of *composite* that do not exist yet."""
        absent = []
        for descriptor in self.descriptors(composite):
            if not await self.executor.adapter.exists(self.library_path(descriptor)):
                absent.append(descriptor)
        return absent

    async def ensure(self, composite: str = "domain", *, dry_run: bool = False) -> list[ExecutionReport]:
        """Generate every missing upstream library of *composite*, in order.

        Returns:
            Reports of the libraries that were generated (empty when all
            already existed).

        Raises:
            ResolutionError: An upstream library could not be generated.
                Libraries generated before it are left in place.
        """
        generated: list[ExecutionReport] = []
        for descriptor in self.descriptors(composite):
            path = self.library_path(descriptor)
            if await self.executor.adapter.exists(path):
                self._progress(f"Found {descriptor.identifier} at {path}")
                continue

            self._progress(f"Required dependency missing: {descriptor.identifier}, generating...")
            raw = {"name": descriptor.name, **descriptor.options, "dry_run": dry_run}
            try:
                report = await self.executor.execute(descriptor.library_type, raw)
            except LibgenError as exc:
                raise ResolutionError(descriptor.identifier, str(exc)) from exc
            generated.append(report)
        return generated

    async def generate_domain(self, raw_options: Mapping[str, Any] | None) -> DomainResult:
        """Generate a full domain: upstream libraries, then contract, data-access and feature.

        Raises:
            ValidationError: The domain options were rejected; nothing was written.
            ResolutionError: An upstream library could not be generated.
            FileSystemError: A domain library failed part-way.
        """
        options = validate_domain_options(raw_options)
        title = to_title(options.name)
        common: dict[str, Any] = {"name": options.name, "dry_run": options.dry_run}
        if options.include_sub_modules:
            common["include_sub_modules"] = True
            common["sub_modules"] = options.sub_modules

        def tags_for(stage: str) -> list[str]:
            return dedupe([f"domain:{stage}", *options.tags])

        upstream = await self.ensure("domain", dry_run=options.dry_run)

        self._progress("Step 1/3: Generating contract library...")
        contract = await self.executor.execute(LibraryType.CONTRACT, {
            **common,
            "description": options.description or f"{title} domain contracts",
            "tags": tags_for("contract"),
            "include_cqrs": options.include_cqrs,
            "types_database_package": self.executor.config.package_name("types", "database"),
        })

        self._progress("Step 2/3: Generating data-access library...")
        data_access = await self.executor.execute(LibraryType.DATA_ACCESS, {
            **common,
            "description": options.description or f"{title} data access",
            "tags": tags_for("data-access"),
            "contract_library": contract.package_name,
            "include_cache": options.include_cache,
        })

        self._progress("Step 3/3: Generating feature library...")
        feature_options: dict[str, Any] = {
            **common,
            "description": options.description or f"{title} feature",
            "tags": tags_for("feature"),
            "data_access_library": data_access.package_name,
            "scope": options.scope,
            "include_cqrs": options.include_cqrs,
        }
        if options.include_client_server is not None:
            feature_options["include_client_server"] = options.include_client_server
        feature = await self.executor.execute(LibraryType.FEATURE, feature_options)

        self._progress(
            f"Domain {title} generated: {contract.package_name}, "
            f"{data_access.package_name}, {feature.package_name}"
        )
        return DomainResult(upstream=tuple(upstream), contract=contract, data_access=data_access, feature=feature)
