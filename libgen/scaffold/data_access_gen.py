"""Data-access library generator.

Produces the repository implementation for a domain: shared errors and
types, one module per repository operation, the repository tag composing
them and its server layers.  Data-access libraries are isomorphic, so there
is never a client/server split.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from libgen.filesystem.adapter import FileSystemAdapter
from libgen.metadata import LibraryMetadata, LibraryType
from libgen.naming import NamingVariants
from libgen.platform import Capability, CapabilitySet, resolve_capabilities
from libgen.scaffold.common import (
    FileEmitter,
    GeneratorResult,
    SourceFile,
    barrel_file,
    base_context,
    claude_file,
    errors_file,
    imp,
    module_path,
    parse_sub_modules,
    workspace_package,
)
from libgen.scaffold.templates import TemplateRenderer

OPERATIONS = ("create", "read", "update", "delete", "aggregate")

_OPERATION_METHODS = {
    "create": ["create"],
    "read": ["findById", "findAll"],
    "update": ["update"],
    "delete": ["delete"],
    "aggregate": ["count"],
}


class DataAccessOptions(BaseModel):
    metadata: LibraryMetadata
    contract_library: str | None = None
    include_cache: bool = False
    include_sub_modules: bool = False
    sub_modules: list[str] = Field(default_factory=list)


def _operation_file(metadata: LibraryMetadata, operation: str, database_package: str) -> SourceFile:
    name = metadata.class_name
    table = f"{metadata.constant_name}_TABLE"
    values = {
        "create": [table],
        "read": ["DEFAULT_PAGINATION", table],
        "update": [table],
        "delete": [table],
        "aggregate": [table],
    }[operation]
    types = {
        "create": [f"{name}Row"],
        "read": [f"{name}Filter", "PaginationOptions"],
        "update": [f"{name}Row"],
        "delete": [],
        "aggregate": [f"{name}Filter"],
    }[operation]

    imports = [
        imp("effect", "Effect", "Option") if operation == "read" else imp("effect", "Effect"),
        imp(database_package, "DatabaseService"),
        imp("../../shared/types", *values),
    ]
    if types:
        imports.append(imp("../../shared/types", *types, type_only=True))

    path = f"{metadata.lib_root}/repository/operations/{operation}.ts"
    return SourceFile(
        path=path,
        template="data-access/operation.ts.j2",
        title=f"{metadata.domain_name} {operation.capitalize()} Operations",
        description=f"Import this file directly for the smallest bundle:\n  import {{ {operation}Operations }} from \"{module_path(metadata, path)}\"",
        module=module_path(metadata, path),
        imports=tuple(imports),
        section=f"{operation.capitalize()} Operations",
        context={"operation": operation},
    )


def plan_data_access_files(
    metadata: LibraryMetadata,
    capabilities: CapabilitySet,
    contract_library: str | None = None,
) -> list[SourceFile]:
    lib = metadata.lib_root
    src = metadata.source_root
    name = metadata.class_name
    domain = metadata.domain_name
    database_package = workspace_package(metadata, "infra", "database")

    def mod(path: str) -> str:
        return module_path(metadata, path)

    repository_errors = [
        {"name": f"{name}NotFoundError", "fields": [("id", "string")]},
        {"name": f"{name}ValidationError", "fields": [("field", "string")]},
        {"name": f"{name}ConflictError", "fields": [("id", "string")]},
        {"name": f"{name}DatabaseError", "fields": [("operation", "string")]},
        {"name": f"{name}TimeoutError", "fields": [("timeoutMs", "number")]},
    ]
    errors_description = "Repository errors. They stay inside the process, so Data.TaggedError is used."
    if contract_library:
        errors_description += f"\nDomain errors live in {contract_library}."

    files = [
        errors_file(f"{lib}/shared/errors.ts", f"{domain} Repository Errors", mod(f"{lib}/shared/errors.ts"),
                    repository_errors, f"{name}RepositoryError", description=errors_description),
        SourceFile(
            path=f"{lib}/shared/types.ts",
            template="data-access/shared-types.ts.j2",
            title=f"{domain} Repository Types",
            module=mod(f"{lib}/shared/types.ts"),
            section="Types",
            context={"table_name": f"{metadata.constant_name.lower()}s"},
        ),
        SourceFile(
            path=f"{lib}/shared/validation.ts",
            template="data-access/validation.ts.j2",
            title=f"{domain} Validation",
            module=mod(f"{lib}/shared/validation.ts"),
            imports=(
                imp("effect", "Effect"),
                imp("./errors", f"{name}ValidationError"),
                imp("./types", "PaginationOptions", type_only=True),
            ),
        ),
        SourceFile(
            path=f"{lib}/repository/repository.ts",
            template="data-access/repository.ts.j2",
            title=f"{domain} Repository",
            description=(
                f"Implements the {domain} repository port"
                + (f" from {contract_library}." if contract_library else ".")
            ),
            module=mod(f"{lib}/repository/repository.ts"),
            imports=(
                imp("effect", "Context", "Layer"),
                *(imp(f"./operations/{op}", f"{op}Operations") for op in OPERATIONS),
            ),
            section="Repository",
        ),
    ]
    files.extend(_operation_file(metadata, operation, database_package) for operation in OPERATIONS)
    files.extend([
        barrel_file(f"{lib}/repository/operations/index.ts", f"{domain} Repository Operations",
                    mod(f"{lib}/repository/operations/index.ts"),
                    [{"path": f"./{op}"} for op in OPERATIONS]),
        barrel_file(f"{lib}/repository/index.ts", f"{domain} Repository", mod(f"{lib}/repository/index.ts"),
                    [{"path": "./repository"}, {"path": "./operations"}]),
        SourceFile(
            path=f"{lib}/repository.spec.ts",
            template="data-access/spec.ts.j2",
            title=f"{domain} Repository Tests",
            imports=(
                imp("@effect/vitest", "describe", "expect", "it"),
                imp("effect", "Effect"),
                imp("./repository", f"{name}Repository"),
            ),
            context={
                "subject": f"{name}Repository",
                "layer": f"{name}Repository.Live",
                "operations": [m for op in OPERATIONS for m in _OPERATION_METHODS[op]],
            },
        ),
        SourceFile(
            path=f"{lib}/queries.ts",
            template="data-access/queries.ts.j2",
            title=f"{domain} Queries",
            module=mod(f"{lib}/queries.ts"),
            imports=(imp("./shared/types", f"{name}Filter", type_only=True),),
        ),
        SourceFile(
            path=f"{lib}/server/layers.ts",
            template="data-access/layers.ts.j2",
            title=f"{domain} Repository Layers",
            module=mod(f"{lib}/server/layers.ts"),
            imports=(
                imp("effect", "Layer"),
                imp(database_package, "DatabaseService"),
                imp("../repository", f"{name}Repository"),
            ),
            section="Layers",
        ),
        SourceFile(
            path=f"{lib}/layers.spec.ts",
            template="data-access/spec.ts.j2",
            title=f"{domain} Layer Tests",
            imports=(
                imp("@effect/vitest", "describe", "expect", "it"),
                imp("effect", "Effect"),
                imp("./repository", f"{name}Repository"),
                imp("./server/layers", f"{name}RepositoryLive"),
            ),
            context={"subject": f"{name}RepositoryLive", "layer": f"{name}RepositoryLive", "operations": []},
        ),
        barrel_file(f"{src}/types.ts", f"{domain} Data Access Types", f"{metadata.package_name}/types", [
            {"path": "./lib/shared/types", "names": [f"{name}Filter", f"{name}Row", "PaginationOptions"], "type_only": True},
            {"path": "./lib/shared/errors", "names": [f"{name}RepositoryError"], "type_only": True},
        ]),
    ])

    if capabilities.enabled(Capability.CACHE):
        files.append(SourceFile(
            path=f"{lib}/cache.ts",
            template="data-access/cache.ts.j2",
            title=f"{domain} Cache",
            module=mod(f"{lib}/cache.ts"),
            imports=(
                imp("effect", "Duration", "Effect", "Option"),
                imp(workspace_package(metadata, "infra", "cache"), "CacheService"),
                imp("./shared/types", f"{name}Row", type_only=True),
            ),
        ))
    return files


def plan_sub_module_files(metadata: LibraryMetadata, sub_modules: list[NamingVariants]) -> list[SourceFile]:
    lib = metadata.lib_root
    name = metadata.class_name
    database_package = workspace_package(metadata, "infra", "database")
    files: list[SourceFile] = []
    for sub in sub_modules:
        base = f"{lib}/{sub.file_name}"
        files.append(SourceFile(
            path=f"{base}/repository.ts",
            template="data-access/sub-repository.ts.j2",
            title=f"{metadata.domain_name} {sub.class_name} Repository",
            module=module_path(metadata, f"{base}/repository.ts"),
            imports=(
                imp("effect", "Context", "Effect", "Layer", "Option"),
                imp(database_package, "DatabaseService"),
                imp("../shared/errors", f"{name}RepositoryError", type_only=True),
            ),
            context={"sub_class": sub.class_name, "sub_table": f"{sub.constant_name.lower()}s"},
        ))
        files.append(barrel_file(f"{base}/index.ts", f"{metadata.domain_name} {sub.class_name}",
                                 module_path(metadata, f"{base}/index.ts"), [{"path": "./repository"}]))
    files.append(SourceFile(
        path=f"{lib}/aggregate.ts",
        template="data-access/aggregate.ts.j2",
        title=f"{metadata.domain_name} Aggregate",
        module=module_path(metadata, f"{lib}/aggregate.ts"),
        imports=(
            imp("effect", "Layer"),
            *(imp(f"./{sub.file_name}", f"{sub.class_name}Repository") for sub in sub_modules),
        ),
        context={"sub_modules": [sub.model_dump() for sub in sub_modules]},
    ))
    return files


def plan_data_access_index(metadata: LibraryMetadata, capabilities: CapabilitySet, sub_modules: list[NamingVariants]) -> SourceFile:
    exports = [
        {"path": "./lib/shared/errors"},
        {"path": "./lib/shared/types"},
        {"path": "./lib/shared/validation"},
        {"path": "./lib/repository", "comment": "Repository"},
        {"path": "./lib/queries"},
        {"path": "./lib/server/layers", "comment": "Layers"},
    ]
    if capabilities.enabled(Capability.CACHE):
        exports.append({"path": "./lib/cache"})
    if sub_modules:
        exports.append({"path": "./lib/aggregate", "comment": "Sub-modules"})
        exports.extend({"path": f"./lib/{sub.file_name}", "alias": sub.class_name} for sub in sub_modules)
    return barrel_file(f"{metadata.source_root}/index.ts", f"{metadata.domain_name} Data Access",
                       metadata.package_name, exports, description=metadata.description)


async def generate_data_access(
    adapter: FileSystemAdapter,
    options: DataAccessOptions,
    renderer: TemplateRenderer | None = None,
) -> GeneratorResult:
    """Generate a data-access library's sources."""
    metadata = options.metadata
    sub_modules = parse_sub_modules(options.sub_modules) if options.include_sub_modules else []
    capabilities = resolve_capabilities(
        LibraryType.DATA_ACCESS,
        include_cache=options.include_cache,
        sub_modules=[sub.file_name for sub in sub_modules],
    )

    core_files = plan_data_access_files(metadata, capabilities, options.contract_library)
    sub_files = plan_sub_module_files(metadata, sub_modules) if capabilities.enabled(Capability.SUB_MODULES) else []
    index_file = plan_data_access_index(metadata, capabilities, sub_modules)

    context = base_context(metadata, contract_library=options.contract_library)
    emitter = FileEmitter(adapter, metadata, context, renderer)
    layout = [f.path for f in (*core_files, *sub_files, index_file)]

    await emitter.emit(claude_file(metadata, layout))
    await emitter.emit_all(core_files)
    if sub_files:
        await emitter.emit_batch(sub_files)
    await emitter.emit(index_file)
    return emitter.result()
