"""Feature library generator.

A feature library implements a domain's business logic as Effect services,
exposes it over RPC and optionally ships client hooks/atoms, CQRS scaffolding
and per-sub-module services.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from libgen.filesystem.adapter import FileSystemAdapter
from libgen.metadata import LibraryMetadata, LibraryType
from libgen.naming import NamingVariants
from libgen.platform import Capability, CapabilitySet, PlatformType, resolve_capabilities
from libgen.scaffold.common import (
    FileEmitter,
    GeneratorResult,
    SourceFile,
    barrel_file,
    base_context,
    claude_file,
    errors_file,
    imp,
    method,
    module_path,
    parse_sub_modules,
    service_file,
    service_spec_file,
    workspace_package,
)
from libgen.scaffold.templates import TemplateRenderer

CQRS_PARTS = (("commands", "base"), ("queries", "base"), ("operations", "executor"), ("projections", "builder"))


class FeatureOptions(BaseModel):
    metadata: LibraryMetadata
    data_access_library: str | None = None
    scope: Literal["shared", "server", "client", "edge"] = "shared"
    platform: PlatformType | None = None
    include_client_server: bool | None = None
    include_cqrs: bool = False
    include_rpc: bool = True
    include_sub_modules: bool = False
    sub_modules: list[str] = Field(default_factory=list)


def _service_methods(name: str) -> list[dict]:
    empty = '{ id: "", name: "" }'
    return [
        method("get", "id: string", f"{name}Output", test_value=empty),
        method("list", "", f"ReadonlyArray<{name}Output>", test_value="[]"),
        method("create", f"input: {name}Input", f"{name}Output", test_value=empty),
    ]


def plan_feature_files(
    metadata: LibraryMetadata,
    capabilities: CapabilitySet,
    data_access_library: str | None = None,
    sub_modules: list[NamingVariants] | None = None,
) -> list[SourceFile]:
    lib = metadata.lib_root
    src = metadata.source_root
    name = metadata.class_name
    domain = metadata.domain_name
    service_name = f"{name}Service"

    def mod(path: str) -> str:
        return module_path(metadata, path)

    service_imports = [
        imp("../../shared/schemas", f"{name}Input", f"{name}Output", type_only=True),
        imp("../../shared/errors", f"{name}ServiceError", type_only=True),
    ]
    dependencies = []
    if data_access_library:
        service_imports.append(imp(data_access_library, f"{name}Repository"))
        dependencies.append({"var": "repository", "tag": f"{name}Repository"})

    layer_imports = [imp("./service", service_name)]
    if data_access_library:
        layer_imports += [imp("effect", "Layer"), imp(data_access_library, f"{name}RepositoryLive")]

    files = [
        errors_file(f"{lib}/shared/errors.ts", f"{domain} Feature Errors", mod(f"{lib}/shared/errors.ts"), [
            {"name": f"{name}NotFoundError", "fields": [("id", "string")]},
            {"name": f"{name}ValidationError", "fields": [("field", "string")]},
            {"name": f"{name}PermissionError", "fields": [("userId", "string")]},
            {"name": f"{name}OperationError", "fields": [("operation", "string")]},
        ], f"{name}ServiceError"),
        SourceFile(path=f"{lib}/shared/types.ts", template="feature/shared-types.ts.j2",
                   title=f"{domain} Feature Types", module=mod(f"{lib}/shared/types.ts")),
        SourceFile(path=f"{lib}/shared/schemas.ts", template="feature/schemas.ts.j2",
                   title=f"{domain} Schemas", module=mod(f"{lib}/shared/schemas.ts"),
                   imports=(imp("effect", "Schema"),), section="Schemas"),
        service_file(
            f"{lib}/server/services/service.ts", f"{domain} Service", mod(f"{lib}/server/services/service.ts"),
            {
                "name": service_name,
                "tag": f"{metadata.package_name}/{service_name}",
                "description": f"Business logic for the {domain} feature",
                "error": f"{name}ServiceError",
                "methods": _service_methods(name),
                "dependencies": dependencies,
            },
            imports=service_imports,
        ),
        SourceFile(path=f"{lib}/server/services/layers.ts", template="feature/layers.ts.j2",
                   title=f"{domain} Service Layers", module=mod(f"{lib}/server/services/layers.ts"),
                   imports=tuple(layer_imports), section="Layers",
                   context={"service_name": service_name, "data_access_library": data_access_library}),
        barrel_file(f"{lib}/server/services/index.ts", f"{domain} Services", mod(f"{lib}/server/services/index.ts"),
                    [{"path": "./service"}, {"path": "./layers"}]),
        service_spec_file(f"{lib}/server/service.spec.ts", f"{domain} Service Tests", service_name,
                          "./services/service", ["get", "list", "create"]),
        SourceFile(path=f"{lib}/server/events/publisher.ts", template="feature/publisher.ts.j2",
                   title=f"{domain} Event Publisher", module=mod(f"{lib}/server/events/publisher.ts"),
                   imports=(imp("effect", "Effect"), imp(workspace_package(metadata, "infra", "pubsub"), "PubsubService"))),
        barrel_file(f"{lib}/server/events/index.ts", f"{domain} Events", mod(f"{lib}/server/events/index.ts"),
                    [{"path": "./publisher"}]),
        SourceFile(path=f"{lib}/server/jobs/queue.ts", template="feature/queue.ts.j2",
                   title=f"{domain} Job Queue", module=mod(f"{lib}/server/jobs/queue.ts"),
                   imports=(imp("effect", "Effect"), imp(workspace_package(metadata, "infra", "queue"), "QueueService"))),
        barrel_file(f"{lib}/server/jobs/index.ts", f"{domain} Jobs", mod(f"{lib}/server/jobs/index.ts"),
                    [{"path": "./queue"}]),
    ]

    if capabilities.enabled(Capability.RPC):
        files += [
            SourceFile(path=f"{lib}/rpc/handlers.ts", template="feature/handlers.ts.j2",
                       title=f"{domain} RPC Handlers", module=mod(f"{lib}/rpc/handlers.ts"),
                       imports=(imp("effect", "Effect"), imp("../server/services", service_name)),
                       context={"service_name": service_name, "methods": ["get", "list", "create"]}),
            SourceFile(path=f"{lib}/rpc/router.ts", template="feature/router.ts.j2",
                       title=f"{domain} RPC Router", module=mod(f"{lib}/rpc/router.ts"),
                       imports=(imp("effect", "Context", "Layer"), imp("./handlers", f"{name}Handlers"))),
            errors_file(f"{lib}/rpc/errors.ts", f"{domain} RPC Errors", mod(f"{lib}/rpc/errors.ts"),
                        [{"name": f"{name}RpcError", "fields": [("code", "String")]}], f"{name}RpcErrors",
                        serializable=True),
            barrel_file(f"{lib}/rpc/index.ts", f"{domain} RPC", mod(f"{lib}/rpc/index.ts"),
                        [{"path": "./handlers"}, {"path": "./router"}, {"path": "./errors"}]),
        ]

    if capabilities.enabled(Capability.CQRS):
        cqrs = f"{lib}/server/cqrs"
        for folder, filename in CQRS_PARTS:
            path = f"{cqrs}/{folder}/{filename}.ts"
            files.append(SourceFile(
                path=path, template="feature/cqrs.ts.j2", title=f"{domain} CQRS {folder.capitalize()}",
                module=mod(path), imports=(imp("effect", "Effect"),), context={"kind": folder},
            ))
            files.append(barrel_file(f"{cqrs}/{folder}/index.ts", f"{domain} CQRS {folder.capitalize()}",
                                     mod(f"{cqrs}/{folder}/index.ts"), [{"path": f"./{filename}"}]))
        cqrs_exports = [{"path": f"./{folder}"} for folder, _ in CQRS_PARTS]
        if sub_modules:
            files.append(SourceFile(
                path=f"{cqrs}/bus.ts", template="feature/cqrs.ts.j2", title=f"{domain} Command Bus",
                module=mod(f"{cqrs}/bus.ts"),
                imports=(imp("effect", "Context", "Effect"),
                         imp("../../shared/errors", f"{name}ServiceError", type_only=True)),
                context={"kind": "bus", "sub_modules": [sub.model_dump() for sub in sub_modules]},
            ))
            cqrs_exports.append({"path": "./bus"})
        files.append(barrel_file(f"{cqrs}/index.ts", f"{domain} CQRS", mod(f"{cqrs}/index.ts"), cqrs_exports))

    if capabilities.enabled(Capability.CLIENT):
        client = f"{lib}/client"
        atoms_file = f"{metadata.file_name}-atoms"
        files += [
            SourceFile(path=f"{client}/hooks/use-{metadata.file_name}.ts", template="feature/hook.ts.j2",
                       title=f"{domain} Hooks", module=mod(f"{client}/hooks/use-{metadata.file_name}.ts"),
                       imports=(imp("jotai", "useAtomValue", "useSetAtom"),
                                imp("../atoms", f"{metadata.property_name}Atom"))),
            barrel_file(f"{client}/hooks/index.ts", f"{domain} Hooks", mod(f"{client}/hooks/index.ts"),
                        [{"path": f"./use-{metadata.file_name}"}]),
            SourceFile(path=f"{client}/atoms/{atoms_file}.ts", template="feature/atoms.ts.j2",
                       title=f"{domain} Atoms", module=mod(f"{client}/atoms/{atoms_file}.ts"),
                       imports=(imp("jotai", "atom"),)),
            barrel_file(f"{client}/atoms/index.ts", f"{domain} Atoms", mod(f"{client}/atoms/index.ts"),
                        [{"path": f"./{atoms_file}"}]),
        ]

    files.append(barrel_file(f"{src}/types.ts", f"{domain} Feature Types", f"{metadata.package_name}/types", [
        {"path": "./lib/shared/types", "type_only": True},
        {"path": "./lib/shared/schemas", "names": [f"{name}Input", f"{name}Output"], "type_only": True},
        {"path": "./lib/shared/errors", "names": [f"{name}ServiceError"], "type_only": True},
    ]))
    return files


def plan_sub_module_files(metadata: LibraryMetadata, sub: NamingVariants) -> list[SourceFile]:
    """Service, handlers, layer and barrel of one feature sub-module."""
    base = f"{metadata.lib_root}/server/services/{sub.file_name}"
    service_name = f"{sub.class_name}Service"
    title = f"{metadata.domain_name} {sub.class_name}"
    module = module_path(metadata, f"{base}/index.ts")
    return [
        service_file(f"{base}/service.ts", f"{title} Service", module, {
            "name": service_name,
            "tag": f"{metadata.package_name}/{service_name}",
            "description": f"{sub.class_name} operations of the {metadata.domain_name} feature",
            "error": f"{metadata.class_name}ServiceError",
            "methods": [method("execute", "input: unknown", "unknown", test_value="undefined")],
        }, imports=[imp("../../../shared/errors", f"{metadata.class_name}ServiceError", type_only=True)]),
        SourceFile(path=f"{base}/handlers.ts", template="feature/handlers.ts.j2", title=f"{title} Handlers",
                   module=module, imports=(imp("effect", "Effect"), imp("./service", service_name)),
                   context={"class_name": sub.class_name, "service_name": service_name, "methods": ["execute"]}),
        SourceFile(path=f"{base}/layer.ts", template="feature/layers.ts.j2", title=f"{title} Layer",
                   module=module, imports=(imp("./service", service_name),),
                   context={"service_name": service_name, "data_access_library": None}),
        barrel_file(f"{base}/index.ts", title, module,
                    [{"path": "./service"}, {"path": "./handlers"}, {"path": "./layer"}]),
    ]


def plan_feature_index(metadata: LibraryMetadata, capabilities: CapabilitySet, sub_modules: list[NamingVariants]) -> SourceFile:
    exports = [
        {"path": "./lib/shared/errors"},
        {"path": "./lib/shared/schemas"},
        {"path": "./lib/server/services", "comment": "Server"},
        {"path": "./lib/server/events"},
        {"path": "./lib/server/jobs"},
    ]
    if capabilities.enabled(Capability.RPC):
        exports.append({"path": "./lib/rpc", "comment": "RPC"})
    if capabilities.enabled(Capability.CQRS):
        exports.append({"path": "./lib/server/cqrs", "comment": "CQRS"})
    if capabilities.enabled(Capability.CLIENT):
        exports.append({"path": "./lib/client/hooks", "comment": "Client"})
        exports.append({"path": "./lib/client/atoms"})
    for index, sub in enumerate(sub_modules):
        entry = {"path": f"./lib/server/services/{sub.file_name}", "alias": sub.class_name}
        if index == 0:
            entry["comment"] = "Sub-modules"
        exports.append(entry)
    return barrel_file(f"{metadata.source_root}/index.ts", f"{metadata.domain_name} Feature",
                       metadata.package_name, exports, description=metadata.description)


async def generate_feature(
    adapter: FileSystemAdapter,
    options: FeatureOptions,
    renderer: TemplateRenderer | None = None,
) -> GeneratorResult:
    """Generate a feature library's sources."""
    metadata = options.metadata
    sub_modules = parse_sub_modules(options.sub_modules) if options.include_sub_modules else []
    capabilities = resolve_capabilities(
        LibraryType.FEATURE,
        platform=options.platform,
        include_client_server=options.include_client_server,
        include_cqrs=options.include_cqrs,
        include_rpc=options.include_rpc,
        sub_modules=[sub.file_name for sub in sub_modules],
    )

    core_files = plan_feature_files(metadata, capabilities, options.data_access_library, sub_modules)
    sub_files = [plan_sub_module_files(metadata, sub) for sub in sub_modules]
    index_file = plan_feature_index(metadata, capabilities, sub_modules)

    context = base_context(
        metadata,
        data_access_library=options.data_access_library,
        feature_scope=options.scope,
        platform=options.platform or "universal",
        include_client=capabilities.enabled(Capability.CLIENT),
    )
    emitter = FileEmitter(adapter, metadata, context, renderer)
    layout = [f.path for f in core_files] + [f.path for group in sub_files for f in group] + [index_file.path]

    await emitter.emit(claude_file(metadata, layout))
    await emitter.emit_all(core_files)
    if capabilities.enabled(Capability.SUB_MODULES):
        for group in sub_files:
            await emitter.emit_batch(group)
    await emitter.emit(index_file)
    return emitter.result()
