"""Infrastructure library generator.

The concern an infra library serves (cache, database, rpc, ...) is detected
from its name and decides the file layout.  Concerns built on Effect
primitives get a dedicated layout; anything else gets the generic service
scaffold with config, memory and auto-selected layers.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Literal, Mapping

from pydantic import BaseModel, Field

from libgen.filesystem.adapter import FileSystemAdapter
from libgen.metadata import LibraryMetadata, LibraryType
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
    service_file,
    service_spec_file,
    workspace_package,
)
from libgen.scaffold.templates import TemplateRenderer
from libgen.utils import parse_csv

InfraConcern = Literal[
    "cache", "database", "queue", "pubsub", "rpc", "auth", "storage", "observability", "generic"
]

# First matching token wins, checked in this order.
CONCERN_KEYWORDS: tuple[tuple[str, InfraConcern], ...] = (
    ("cache", "cache"), ("caching", "cache"),
    ("database", "database"), ("db", "database"),
    ("queue", "queue"), ("job", "queue"), ("jobs", "queue"), ("worker", "queue"), ("task", "queue"),
    ("pubsub", "pubsub"), ("event", "pubsub"), ("events", "pubsub"), ("messaging", "pubsub"),
    ("broadcast", "pubsub"),
    ("rpc", "rpc"), ("api", "rpc"), ("remote", "rpc"),
    ("auth", "auth"), ("authentication", "auth"), ("authorization", "auth"), ("session", "auth"),
    ("storage", "storage"), ("file", "storage"), ("files", "storage"), ("blob", "storage"),
    ("upload", "storage"),
    ("observability", "observability"), ("otel", "observability"), ("tracing", "observability"),
    ("logging", "observability"), ("log", "observability"), ("metrics", "observability"),
    ("telemetry", "observability"),
)

# Infra concerns that delegate to a provider library.
INFRA_PROVIDER_MAP: Mapping[str, str] = MappingProxyType({"database": "kysely"})

_RPC_MIDDLEWARE = (
    {"id": "auth", "name": "AuthMiddleware", "title": "Authenticates user requests", "header": "authorization"},
    {"id": "service-auth", "name": "ServiceAuthMiddleware", "title": "Authenticates service-to-service calls",
     "header": "x-service-token"},
    {"id": "request-meta", "name": "RequestMetaMiddleware", "title": "Attaches request metadata to the span",
     "header": None},
    {"id": "route-selector", "name": "RouteSelectorMiddleware",
     "title": "Selects middleware from the contract route tag", "header": None},
)


class InfraOptions(BaseModel):
    metadata: LibraryMetadata
    platform: PlatformType | None = None
    include_client_server: bool | None = None
    providers: list[str] = Field(default_factory=list)


def detect_infra_concern(name: str) -> InfraConcern:
    """Map a library name to the infrastructure concern it serves."""
    tokens = name.lower().replace("_", "-").split("-")
    for keyword, concern in CONCERN_KEYWORDS:
        if keyword in tokens:
            return concern
    return "generic"


def provider_for_infra(concern: str) -> str | None:
    return INFRA_PROVIDER_MAP.get(concern)


# ---------------------------------------------------------------------------
# Service shapes per concern
# ---------------------------------------------------------------------------


def _service_methods(concern: InfraConcern) -> list[dict]:
    if concern == "cache":
        return [
            method("get", "key: string", "Option.Option<unknown>", test_value="Option.none()"),
            method("set", "key: string, value: unknown", "void", test_value="undefined"),
            method("invalidate", "key: string", "void", test_value="undefined"),
        ]
    if concern == "queue":
        return [
            method("enqueue", "queue: string, job: unknown", "void", test_value="undefined"),
            method("size", "queue: string", "number", test_value="0"),
        ]
    if concern == "pubsub":
        return [
            method("publish", "topic: string, message: unknown", "void", test_value="undefined"),
            method("subscribe", "topic: string", "ReadonlyArray<unknown>", test_value="[]"),
        ]
    if concern == "database":
        return [
            method("query", "run: (db: any) => Promise<unknown>", "unknown", test_value="undefined"),
            method("healthCheck", "", "boolean", test_value="true"),
        ]
    if concern == "auth":
        return [
            method("verify", "token: string", "Session", test_value='{ id: "", userId: "", expiresAt: new Date(0) }'),
            method("getSession", "id: string", "Option.Option<Session>", test_value="Option.none()"),
        ]
    if concern == "storage":
        return [
            method("upload", "key: string, body: Uint8Array", "StoredObject",
                   test_value='{ key: "", size: 0, contentType: "" }'),
            method("download", "key: string", "Uint8Array", test_value="new Uint8Array()"),
            method("remove", "key: string", "void", test_value="undefined"),
        ]
    return [
        method("execute", "input: unknown", "unknown", test_value="undefined"),
        method("healthCheck", "", "boolean", test_value="true"),
    ]


def _service(metadata: LibraryMetadata, name: str, description: str, methods: list[dict], **extra) -> dict:
    return {
        "name": name,
        "tag": f"{metadata.package_name}/{name}",
        "description": description,
        "error": f"{metadata.class_name}Error",
        "methods": methods,
        **extra,
    }


def _errors(metadata: LibraryMetadata, concern: InfraConcern) -> SourceFile:
    name = metadata.class_name
    errors = [
        {"name": f"{name}ConnectionError", "fields": [("target", "string")]},
        {"name": f"{name}TimeoutError", "fields": [("timeoutMs", "number")]},
        {"name": f"{name}OperationError", "fields": [("operation", "string")]},
    ]
    if concern == "rpc":
        errors.append({"name": "RpcMiddlewareError", "fields": [("middleware", "string")]})
    path = f"{metadata.lib_root}/errors.ts"
    return errors_file(path, f"{metadata.domain_name} Errors", module_path(metadata, path), errors, f"{name}Error")


def _service_source(
    metadata: LibraryMetadata,
    filename: str,
    service: dict,
    extra_imports: list | None = None,
) -> SourceFile:
    path = f"{metadata.lib_root}/{filename}.ts"
    imports = [imp("./errors", f"{metadata.class_name}Error", type_only=True), *(extra_imports or [])]
    if any("Option." in m["returns"] for m in service["methods"]):
        imports.append(imp("effect", "Option"))
    return service_file(path, f"{metadata.domain_name} {PurePosixPath(filename).name.title()}",
                        module_path(metadata, path), service, imports=imports)


def _layers_source(metadata: LibraryMetadata, service_name: str, has_memory: bool) -> SourceFile:
    path = f"{metadata.lib_root}/layers.ts"
    imports = [imp("effect", "Config", "Effect", "Layer"), imp("./service", service_name)]
    if has_memory:
        imports.append(imp("./memory", f"{service_name}Memory"))
    return SourceFile(path=path, template="infra/layers.ts.j2", title=f"{metadata.domain_name} Layers",
                      module=module_path(metadata, path), imports=tuple(imports), section="Layers",
                      context={"service_name": service_name, "has_memory": has_memory})


# ---------------------------------------------------------------------------
# Layout per concern
# ---------------------------------------------------------------------------


def _primitive_files(metadata: LibraryMetadata, concern: InfraConcern, capabilities: CapabilitySet) -> list[SourceFile]:
    lib = metadata.lib_root
    name = metadata.class_name
    domain = metadata.domain_name
    service_name = f"{name}Service"

    def mod(path: str) -> str:
        return module_path(metadata, path)

    files = [_errors(metadata, concern)]

    if concern in ("cache", "queue", "pubsub"):
        files.append(_service_source(metadata, "service", _service(
            metadata, service_name, f"{domain} backed by Effect primitives", _service_methods(concern))))
        files.append(_layers_source(metadata, service_name, has_memory=False))

    elif concern == "database":
        service = _service(metadata, service_name, f"{domain} orchestration over database providers",
                           _service_methods(concern))
        extra = []
        provider = provider_for_infra(concern)
        if provider:
            provider_class = provider.title().replace("-", "")
            service["dependencies"] = [{"var": provider.replace("-", "_"), "tag": provider_class}]
            extra.append(imp(workspace_package(metadata, "provider", provider), provider_class))
        files.append(_service_source(metadata, "service", service, extra))

    elif concern in ("auth", "storage"):
        interfaces = (
            [{"name": "Session", "fields": [("id", "string"), ("userId", "string"), ("expiresAt", "Date")]}]
            if concern == "auth"
            else [{"name": "StoredObject", "fields": [("key", "string"), ("size", "number"), ("contentType", "string")]}]
        )
        type_name = interfaces[0]["name"]
        files.append(_service_source(metadata, "service", _service(
            metadata, service_name, f"{domain} service", _service_methods(concern)),
            [imp("./types", type_name, type_only=True)]))
        files.append(SourceFile(path=f"{lib}/types.ts", template="infra/types.ts.j2", title=f"{domain} Types",
                                module=mod(f"{lib}/types.ts"), context={"interfaces": interfaces}))

    elif concern == "rpc":
        files += [
            _service_source(metadata, "core", _service(metadata, service_name, "RPC core: dispatches calls to routes", [
                method("call", "route: string, payload: unknown", "unknown", test_value="undefined")])),
            _service_source(metadata, "transport", _service(metadata, f"{name}Transport", "HTTP or in-process transport", [
                method("send", "request: Request", "Response", test_value="new Response()")])),
            _service_source(metadata, "client", _service(metadata, f"{name}Client", "Typed RPC client", [
                method("request", "route: string, payload: unknown", "unknown", test_value="undefined")])),
            _service_source(metadata, "router", _service(metadata, f"{name}Router", "Registers contract RPC groups", [
                method("register", "group: unknown", "void", test_value="undefined")])),
        ]
        for middleware in _RPC_MIDDLEWARE:
            path = f"{lib}/middleware/{middleware['id']}.ts"
            files.append(SourceFile(
                path=path, template="infra/middleware.ts.j2", title=f"{domain} {middleware['name']}",
                module=mod(path),
                imports=(imp("effect", "Context", "Effect", "Layer"), imp("../errors", "RpcMiddlewareError")),
                context={"middleware": middleware},
            ))
        files.append(barrel_file(f"{lib}/middleware/index.ts", f"{domain} Middleware", mod(f"{lib}/middleware/index.ts"),
                                 [{"path": f"./{m['id']}"} for m in _RPC_MIDDLEWARE]))
        if capabilities.enabled(Capability.CLIENT):
            files.append(SourceFile(
                path=f"{lib}/hooks.ts", template="infra/hook.ts.j2", title=f"{domain} Hooks", module=mod(f"{lib}/hooks.ts"),
                imports=(imp("effect", "Effect"), imp("react", "useMemo"), imp("./core", service_name)),
                context={"service_name": service_name, "client_layer": f"{service_name}.Test"},
            ))

    elif concern == "observability":
        files += [
            _service_source(metadata, "provider", _service(metadata, service_name, "Observability provider", [
                method("flush", "", "void", test_value="undefined")])),
            _service_source(metadata, "sdk", _service(metadata, f"{name}Sdk", "OpenTelemetry SDK lifecycle", [
                method("start", "", "void", test_value="undefined"),
                method("shutdown", "", "void", test_value="undefined")])),
            _service_source(metadata, "supervisor", _service(metadata, f"{name}Supervisor", "Tracks fibers for diagnostics", [
                method("activeFibers", "", "number", test_value="0")])),
            SourceFile(path=f"{lib}/config.ts", template="infra/config.ts.j2", title=f"{domain} Config",
                       module=mod(f"{lib}/config.ts"), imports=(imp("effect", "Config"),),
                       context={"service_name": service_name, "config_keys": ["service-name", "otlp-endpoint"]}),
            SourceFile(path=f"{lib}/presets.ts", template="infra/constants.ts.j2", title=f"{domain} Presets",
                       module=mod(f"{lib}/presets.ts"),
                       context={"constants": [("DEVELOPMENT_PRESET", '{ sampleRate: 1, exportIntervalMs: 5000 }'),
                                              ("PRODUCTION_PRESET", '{ sampleRate: 0.1, exportIntervalMs: 60000 }')]}),
            SourceFile(path=f"{lib}/constants.ts", template="infra/constants.ts.j2", title=f"{domain} Constants",
                       module=mod(f"{lib}/constants.ts"),
                       context={"constants": [(f"{metadata.constant_name}_SERVICE_NAME", f'"{metadata.file_name}"'),
                                              ("DEFAULT_OTLP_ENDPOINT", '"http://localhost:4318"')]}),
            _service_source(metadata, "logging", _service(metadata, f"{name}Logger", "Structured logging", [
                method("log", "level: string, message: string", "void", test_value="undefined")])),
            _service_source(metadata, "metrics", _service(metadata, f"{name}Metrics", "Counters and histograms", [
                method("increment", "name: string", "void", test_value="undefined")])),
        ]
    return files


def _generic_files(metadata: LibraryMetadata, capabilities: CapabilitySet) -> list[SourceFile]:
    lib = metadata.lib_root
    name = metadata.class_name
    domain = metadata.domain_name
    service_name = f"{name}Service"

    def mod(path: str) -> str:
        return module_path(metadata, path)

    files = [
        _errors(metadata, "generic"),
        _service_source(metadata, "service", _service(metadata, service_name, f"{domain} infrastructure service",
                                                      _service_methods("generic"))),
        SourceFile(path=f"{lib}/config.ts", template="infra/config.ts.j2", title=f"{domain} Config",
                   module=mod(f"{lib}/config.ts"), imports=(imp("effect", "Config"),),
                   context={"service_name": service_name}),
        SourceFile(path=f"{lib}/memory.ts", template="infra/memory.ts.j2", title=f"{domain} Memory Layer",
                   module=mod(f"{lib}/memory.ts"),
                   imports=(imp("effect", "Effect", "Layer", "Option", "Ref"), imp("./service", service_name)),
                   context={"service_name": service_name}),
        _layers_source(metadata, service_name, has_memory=True),
    ]
    if capabilities.enabled(Capability.CLIENT):
        client_layer = f"{service_name}ClientLive"
        files += [
            SourceFile(path=f"{lib}/layers/client-layers.ts", template="infra/client-layers.ts.j2",
                       title=f"{domain} Client Layers", module=mod(f"{lib}/layers/client-layers.ts"),
                       imports=(imp("../service", service_name),), context={"service_name": service_name}),
            SourceFile(path=f"{lib}/client/hooks/use-{metadata.file_name}.ts", template="infra/hook.ts.j2",
                       title=f"{domain} Hooks", module=mod(f"{lib}/client/hooks/use-{metadata.file_name}.ts"),
                       imports=(imp("effect", "Effect"), imp("react", "useMemo"),
                                imp("../../service", service_name),
                                imp("../../layers/client-layers", client_layer)),
                       context={"service_name": service_name, "client_layer": client_layer}),
        ]
    return files


_PRIMARY_MODULE = {"rpc": "core", "observability": "provider"}


def plan_infra_files(
    metadata: LibraryMetadata,
    concern: InfraConcern,
    capabilities: CapabilitySet,
    providers: list[str] | None = None,
) -> list[SourceFile]:
    """Every file of an infra library except ``CLAUDE.md`` and the index."""
    if concern == "generic":
        files = _generic_files(metadata, capabilities)
    else:
        files = _primitive_files(metadata, concern, capabilities)

    if providers:
        path = f"{metadata.lib_root}/providers.ts"
        files.append(SourceFile(path=path, template="infra/providers.ts.j2", title=f"{metadata.domain_name} Providers",
                                module=module_path(metadata, path),
                                context={"service_name": f"{metadata.class_name}Service", "providers": providers}))

    type_exports = [{"path": "./lib/errors", "names": [f"{metadata.class_name}Error"], "type_only": True}]
    if concern == "generic":
        type_exports.append({"path": "./lib/config", "names": [f"{metadata.class_name}Config"], "type_only": True})
    files.append(barrel_file(f"{metadata.source_root}/types.ts", f"{metadata.domain_name} Types",
                             f"{metadata.package_name}/types", type_exports))

    service_name = f"{metadata.class_name}Service"
    primary = _PRIMARY_MODULE.get(concern, "service")
    files.append(service_spec_file(f"{metadata.lib_root}/service.spec.ts", f"{metadata.domain_name} Service Tests",
                                   service_name, f"./{primary}"))

    unique: dict[str, SourceFile] = {}
    for source in files:
        unique.setdefault(source.path, source)
    return list(unique.values())


def plan_infra_index(metadata: LibraryMetadata, files: list[SourceFile]) -> SourceFile:
    """Re-export every lib module, deferring to nested barrels where present."""
    paths = [PurePosixPath(f.path) for f in files]
    barrels = {path.parent for path in paths if path.name == "index.ts"}
    exports = []
    for path in paths:
        if path.name.endswith(".spec.ts") or path.suffix != ".ts":
            continue
        relative = path.relative_to(metadata.source_root).with_suffix("")
        if relative.parts[0] != "lib":
            continue
        if path.parent in barrels:
            if path.name == "index.ts":
                exports.append({"path": f"./{relative.parent}"})
            continue
        exports.append({"path": f"./{relative}"})
    return barrel_file(f"{metadata.source_root}/index.ts", f"{metadata.domain_name} Infrastructure",
                       metadata.package_name, exports, description=metadata.description)


async def generate_infra(
    adapter: FileSystemAdapter,
    options: InfraOptions,
    renderer: TemplateRenderer | None = None,
) -> GeneratorResult:
    """Generate an infrastructure library's sources."""
    metadata = options.metadata
    concern = detect_infra_concern(metadata.file_name)
    capabilities = resolve_capabilities(
        LibraryType.INFRA,
        platform=options.platform,
        include_client_server=options.include_client_server,
    )
    providers = parse_csv(options.providers)

    files = plan_infra_files(metadata, concern, capabilities, providers)
    index_file = plan_infra_index(metadata, files)

    context = base_context(metadata, concern=concern, provider=provider_for_infra(concern))
    emitter = FileEmitter(adapter, metadata, context, renderer)

    await emitter.emit(claude_file(metadata, [index_file.path, *(f.path for f in files)]))
    await emitter.emit(index_file)
    await emitter.emit_all(files)
    return emitter.result()
