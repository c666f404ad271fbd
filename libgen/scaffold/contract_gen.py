"""Contract library generator.

A contract library holds a domain's interfaces and nothing else: entities,
repository ports, errors, events and RPC definitions.  CQRS message types and
per-sub-module contracts are optional.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from libgen.filesystem.adapter import FileSystemAdapter
from libgen.metadata import LibraryMetadata, LibraryType
from libgen.naming import NamingVariants, to_class_case
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
)
from libgen.scaffold.templates import TemplateRenderer

CQRS_FILES = ("commands", "queries", "projections")
SUB_MODULE_FILES = ("index", "errors", "entities", "events", "rpc-definitions", "rpc-errors")


class ContractOptions(BaseModel):
    metadata: LibraryMetadata
    include_cqrs: bool = False
    include_sub_modules: bool = False
    sub_modules: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)
    types_database_package: str | None = None


def _domain_errors(class_name: str) -> list[dict]:
    return [
        {"name": f"{class_name}NotFoundError", "fields": [("id", "string")]},
        {"name": f"{class_name}ValidationError", "fields": [("field", "string")]},
        {"name": f"{class_name}ConflictError", "fields": [("id", "string")]},
        {"name": f"{class_name}RepositoryError", "fields": [("operation", "string")]},
    ]


def _rpc_errors(class_name: str) -> list[dict]:
    return [{"name": f"{class_name}RpcError", "fields": [("code", "String")]}]


def _rpc_names(entities: list[str]) -> list[str]:
    names: list[str] = []
    for entity in entities:
        names.extend([f"Get{entity}", f"List{entity}s", f"Create{entity}"])
    return names


def plan_contract_files(
    metadata: LibraryMetadata,
    capabilities: CapabilitySet,
    entities: list[str],
    types_database_package: str | None = None,
) -> list[SourceFile]:
    """Files written for every contract, plus the CQRS set when enabled."""
    lib = metadata.lib_root
    src = metadata.source_root
    name = metadata.class_name
    domain = metadata.domain_name

    def mod(path: str) -> str:
        return module_path(metadata, path)

    entity_imports = [imp("effect", "Schema")]
    if types_database_package:
        entity_imports.append(imp(types_database_package, "DB", type_only=True))

    files = [
        errors_file(f"{lib}/errors.ts", f"{domain} Domain Errors", mod(f"{lib}/errors.ts"),
                    _domain_errors(name), f"{name}Error"),
        SourceFile(
            path=f"{lib}/entities.ts",
            template="contract/entities.ts.j2",
            title=f"{domain} Entities",
            description="Entity schemas shared by every layer of the domain.",
            module=mod(f"{lib}/entities.ts"),
            imports=tuple(entity_imports),
            section="Entities",
            context={"types_database_package": types_database_package},
        ),
        SourceFile(
            path=f"{lib}/ports.ts",
            template="contract/ports.ts.j2",
            title=f"{domain} Ports",
            description="Repository interfaces implemented by the data-access layer.",
            module=mod(f"{lib}/ports.ts"),
            imports=(
                imp("effect", "Context", "Effect", "Option"),
                imp("./entities", *entities, type_only=True),
                imp("./errors", f"{name}RepositoryError", type_only=True),
            ),
            section="Ports",
        ),
        SourceFile(
            path=f"{lib}/events.ts",
            template="contract/events.ts.j2",
            title=f"{domain} Domain Events",
            module=mod(f"{lib}/events.ts"),
            imports=(imp("effect", "Schema"),),
            section="Events",
        ),
        barrel_file(
            f"{src}/types.ts", f"{domain} Types", f"{metadata.package_name}/types",
            [
                {"path": "./lib/entities", "names": entities, "type_only": True},
                {"path": "./lib/ports", "names": ["PaginatedResult", "PaginationOptions"], "type_only": True},
                {"path": "./lib/errors", "names": [f"{name}Error"], "type_only": True},
            ],
            description="Type-only exports for consumers that must not pull runtime code.",
        ),
        errors_file(f"{lib}/rpc-errors.ts", f"{domain} RPC Errors", mod(f"{lib}/rpc-errors.ts"),
                    _rpc_errors(name), f"{name}RpcErrors", serializable=True,
                    description="Serializable errors returned across the RPC boundary."),
        SourceFile(
            path=f"{lib}/rpc-definitions.ts",
            template="contract/rpc-definitions.ts.j2",
            title=f"{domain} RPC Definitions",
            module=mod(f"{lib}/rpc-definitions.ts"),
            imports=(
                imp("@effect/rpc", "Rpc"),
                imp("effect", "Schema"),
                imp("./entities", *entities),
                imp("./rpc-errors", f"{name}RpcError"),
            ),
            section="RPC Definitions",
        ),
        SourceFile(
            path=f"{lib}/rpc-group.ts",
            template="contract/rpc-group.ts.j2",
            title=f"{domain} RPC Group",
            module=mod(f"{lib}/rpc-group.ts"),
            imports=(imp("@effect/rpc", "RpcGroup"), imp("./rpc-definitions", *_rpc_names(entities))),
        ),
    ]

    if capabilities.enabled(Capability.CQRS):
        for kind in CQRS_FILES:
            path = f"{lib}/{kind}.ts"
            files.append(SourceFile(
                path=path,
                template="contract/cqrs.ts.j2",
                title=f"{domain} {kind.capitalize()}",
                description=f"CQRS {kind} for the {domain} domain.",
                module=mod(path),
                imports=(imp("effect", "Schema"),),
                section=kind.capitalize(),
                context={"kind": kind},
            ))
    return files


def plan_contract_index(metadata: LibraryMetadata, capabilities: CapabilitySet, sub_modules: list[NamingVariants]) -> SourceFile:
    exports = [
        {"path": "./lib/errors"},
        {"path": "./lib/entities"},
        {"path": "./lib/ports"},
        {"path": "./lib/events"},
        {"path": "./lib/rpc-errors", "comment": "RPC"},
        {"path": "./lib/rpc-definitions"},
        {"path": "./lib/rpc-group"},
    ]
    if capabilities.enabled(Capability.CQRS):
        exports.append({"path": "./lib/commands", "comment": "CQRS"})
        exports.extend({"path": f"./lib/{kind}"} for kind in CQRS_FILES[1:])
    for index, sub in enumerate(sub_modules):
        entry = {"path": f"./{sub.file_name}", "alias": sub.class_name}
        if index == 0:
            entry["comment"] = "Sub-modules"
        exports.append(entry)
    return barrel_file(f"{metadata.source_root}/index.ts", f"{metadata.domain_name} Contract",
                       metadata.package_name, exports, description=metadata.description)


def plan_sub_module_files(metadata: LibraryMetadata, sub: NamingVariants) -> list[SourceFile]:
    """The six files of one contract sub-module."""
    base = f"{metadata.source_root}/{sub.file_name}"
    title = f"{metadata.domain_name} {sub.class_name}"
    module = f"{metadata.package_name}/{sub.file_name}"
    override = {"class_name": sub.class_name, "entities": [sub.class_name]}
    return [
        barrel_file(f"{base}/index.ts", title, module, [
            {"path": "./errors"}, {"path": "./entities"}, {"path": "./events"},
            {"path": "./rpc-errors"}, {"path": "./rpc-definitions"},
        ]),
        errors_file(f"{base}/errors.ts", f"{title} Errors", module, _domain_errors(sub.class_name), f"{sub.class_name}Error"),
        SourceFile(path=f"{base}/entities.ts", template="contract/entities.ts.j2", title=f"{title} Entities",
                   module=module, imports=(imp("effect", "Schema"),), context={**override, "types_database_package": None}),
        SourceFile(path=f"{base}/events.ts", template="contract/events.ts.j2", title=f"{title} Events",
                   module=module, imports=(imp("effect", "Schema"),), context=override),
        SourceFile(path=f"{base}/rpc-definitions.ts", template="contract/rpc-definitions.ts.j2",
                   title=f"{title} RPC Definitions", module=module,
                   imports=(imp("@effect/rpc", "Rpc"), imp("effect", "Schema"),
                            imp("./entities", sub.class_name), imp("./rpc-errors", f"{sub.class_name}RpcError")),
                   context=override),
        errors_file(f"{base}/rpc-errors.ts", f"{title} RPC Errors", module, _rpc_errors(sub.class_name),
                    f"{sub.class_name}RpcErrors", serializable=True),
    ]


async def generate_contract(
    adapter: FileSystemAdapter,
    options: ContractOptions,
    renderer: TemplateRenderer | None = None,
) -> GeneratorResult:
    """Generate a contract library's sources.

    Args:
        adapter: Filesystem adapter to write through.
        options: Metadata plus contract flags.
        renderer: Optional renderer override (tests).

    Returns:
        The :class:`GeneratorResult` listing every file written.
    """
    metadata = options.metadata
    sub_modules = parse_sub_modules(options.sub_modules) if options.include_sub_modules else []
    capabilities = resolve_capabilities(
        LibraryType.CONTRACT,
        include_cqrs=options.include_cqrs,
        sub_modules=[sub.file_name for sub in sub_modules],
    )
    entities = [to_class_case(entity) for entity in options.entities] or [metadata.class_name]

    core_files = plan_contract_files(metadata, capabilities, entities, options.types_database_package)
    index_file = plan_contract_index(metadata, capabilities, sub_modules)
    sub_files = [plan_sub_module_files(metadata, sub) for sub in sub_modules]

    layout = [f.path for f in core_files] + [index_file.path] + [f.path for group in sub_files for f in group]
    emitter = FileEmitter(adapter, metadata, base_context(metadata, entities=entities), renderer)

    await emitter.emit(claude_file(metadata, layout))
    await emitter.emit_all(core_files)
    if capabilities.enabled(Capability.SUB_MODULES):
        for group in sub_files:
            await emitter.emit_batch(group)
    await emitter.emit(index_file)
    return emitter.result()
