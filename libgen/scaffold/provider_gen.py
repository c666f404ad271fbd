"""Provider library generator.

A provider adapts one external service (an SDK, a CLI, an HTTP or GraphQL
API) into an Effect service with typed errors.  Kysely, Redis and Supabase
get layouts matching their client libraries; every other service gets the
generic operation-based service.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from libgen.filesystem.adapter import FileSystemAdapter
from libgen.metadata import LibraryMetadata
from libgen.platform import PlatformType
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
)
from libgen.scaffold.templates import TemplateRenderer

ProviderType = Literal["sdk", "cli", "http", "graphql"]
ProviderOperation = Literal["create", "read", "update", "delete", "query"]
ProviderVariant = Literal["kysely", "redis", "supabase", "generic"]

DEFAULT_OPERATIONS: tuple[ProviderOperation, ...] = ("create", "read", "update", "delete", "query")

_PRIMARY_MODULE = {"kysely": "service", "redis": "redis", "supabase": "client", "generic": "service"}


class ProviderOptions(BaseModel):
    metadata: LibraryMetadata
    external_service: str
    platform: PlatformType | None = None
    provider_type: ProviderType = "sdk"
    operations: list[ProviderOperation] = Field(default_factory=lambda: list(DEFAULT_OPERATIONS))
    cli_command: str | None = None
    base_url: str | None = None
    auth_type: Literal["api-key", "oauth", "basic", "bearer", "none"] = "api-key"


def detect_provider_variant(file_name: str, external_service: str) -> ProviderVariant:
    """Pick the dedicated layout for well-known services."""
    haystack = f"{file_name} {external_service}".lower()
    for variant in ("kysely", "redis", "supabase"):
        if variant in haystack:
            return variant
    return "generic"


def _operation_methods(operations: list[str], provider_type: ProviderType) -> list[dict]:
    signatures = {
        "create": method("create", "input: unknown", "unknown", test_value="undefined"),
        "read": method("read", "id: string", "unknown", test_value="undefined"),
        "update": method("update", "id: string, input: unknown", "unknown", test_value="undefined"),
        "delete": method("delete", "id: string", "void", test_value="undefined"),
        "query": method("query", "params: unknown", "ReadonlyArray<unknown>", test_value="[]"),
    }
    methods = [signatures[op] for op in operations]
    if provider_type == "cli":
        methods.insert(0, method("execute", "args: ReadonlyArray<string>", "string", test_value='""'))
    elif provider_type == "graphql":
        methods.insert(0, method("request", "document: string, variables?: Record<string, unknown>", "unknown",
                                 test_value="undefined"))
    return methods


def plan_provider_files(metadata: LibraryMetadata, options: ProviderOptions, variant: ProviderVariant) -> list[SourceFile]:
    lib = metadata.lib_root
    name = metadata.class_name
    domain = metadata.domain_name
    error_union = f"{name}ProviderError"

    def mod(path: str) -> str:
        return module_path(metadata, path)

    def service(filename: str, service_name: str, description: str, methods: list[dict], extra=()) -> SourceFile:
        path = f"{lib}/{filename}.ts"
        return service_file(path, f"{domain} {filename.title()}", mod(path), {
            "name": service_name,
            "tag": f"{metadata.package_name}/{service_name}",
            "description": description,
            "error": error_union,
            "methods": methods,
        }, imports=[imp("./errors", error_union, type_only=True), *extra])

    def validation() -> SourceFile:
        return SourceFile(path=f"{lib}/validation.ts", template="provider/validation.ts.j2",
                          title=f"{domain} Validation", module=mod(f"{lib}/validation.ts"),
                          imports=(imp("effect", "Effect"), imp("./errors", f"{name}ConfigError"),
                                   imp("./types", f"{name}ProviderConfig", type_only=True)))

    files = [
        errors_file(f"{lib}/errors.ts", f"{domain} Provider Errors", mod(f"{lib}/errors.ts"), [
            {"name": f"{name}ConnectionError", "fields": [("service", "string")]},
            {"name": f"{name}RateLimitError", "fields": [("retryAfterMs", "number")]},
            {"name": f"{name}ConfigError", "fields": []},
            {"name": f"{name}OperationError", "fields": [("operation", "string")]},
        ], error_union, description=f"Errors raised while talking to {options.external_service}."),
        SourceFile(path=f"{lib}/types.ts", template="provider/types.ts.j2", title=f"{domain} Provider Types",
                   module=mod(f"{lib}/types.ts"), section="Configuration"),
    ]

    if variant == "kysely":
        files += [
            SourceFile(path=f"{lib}/interface.ts", template="provider/interface.ts.j2", title=f"{domain} Interface",
                       module=mod(f"{lib}/interface.ts"),
                       imports=(imp("effect", "Effect"), imp("kysely", "Kysely", type_only=True),
                                imp("./errors", error_union, type_only=True))),
            service("service", name, "Type-safe database access with migrations", [
                method("query", "run: (db: any) => Promise<unknown>", "unknown", test_value="undefined"),
                method("migrate", "", "void", test_value="undefined"),
                method("healthCheck", "", "boolean", test_value="true"),
            ]),
            validation(),
        ]
    elif variant == "redis":
        files += [
            service("redis", name, "Redis connection", [
                method("command", "name: string, args: ReadonlyArray<string>", "unknown", test_value="undefined"),
                method("ping", "", "boolean", test_value="true"),
            ]),
            service("cache", f"{name}Cache", "Redis-backed cache operations", [
                method("get", "key: string", "string | null", test_value="null"),
                method("set", "key: string, value: string, ttlSeconds?: number", "void", test_value="undefined"),
            ]),
            service("pubsub", f"{name}Pubsub", "Redis pub/sub channels", [
                method("publish", "channel: string, message: string", "number", test_value="0"),
            ]),
            service("queue", f"{name}Queue", "Redis list-backed queue", [
                method("push", "queue: string, payload: string", "number", test_value="0"),
                method("pop", "queue: string", "string | null", test_value="null"),
            ]),
        ]
    elif variant == "supabase":
        files += [
            service("client", name, "Supabase client", [
                method("from", "table: string", "unknown", test_value="undefined"),
            ]),
            service("auth", f"{name}Auth", "Supabase authentication", [
                method("getUser", "token: string", "unknown", test_value="undefined"),
            ]),
            service("storage", f"{name}Storage", "Supabase storage buckets", [
                method("upload", "bucket: string, path: string, body: Uint8Array", "void", test_value="undefined"),
            ]),
        ]
    else:
        files += [
            service("service", name, f"{options.external_service} {options.provider_type} provider",
                    _operation_methods(list(options.operations), options.provider_type)),
            validation(),
        ]

    files.append(service_spec_file(f"{lib}/service.spec.ts", f"{domain} Provider Tests", name,
                                   f"./{_PRIMARY_MODULE[variant]}"))
    files.append(barrel_file(f"{metadata.source_root}/types.ts", f"{domain} Types", f"{metadata.package_name}/types", [
        {"path": "./lib/types", "type_only": True},
        {"path": "./lib/errors", "names": [error_union], "type_only": True},
    ]))
    return files


def plan_provider_index(metadata: LibraryMetadata, files: list[SourceFile]) -> SourceFile:
    lib_prefix = f"{metadata.lib_root}/"
    exports = [
        {"path": "./lib/" + f.path[len(lib_prefix):-len(".ts")]}
        for f in files
        if f.path.startswith(lib_prefix) and not f.path.endswith(".spec.ts")
    ]
    return barrel_file(f"{metadata.source_root}/index.ts", f"{metadata.domain_name} Provider",
                       metadata.package_name, exports, description=metadata.description)


async def generate_provider(
    adapter: FileSystemAdapter,
    options: ProviderOptions,
    renderer: TemplateRenderer | None = None,
) -> GeneratorResult:
    """Generate a provider library's sources."""
    metadata = options.metadata
    variant = detect_provider_variant(metadata.file_name, options.external_service)

    files = plan_provider_files(metadata, options, variant)
    index_file = plan_provider_index(metadata, files)

    context = base_context(
        metadata,
        external_service=options.external_service,
        provider_type=options.provider_type,
        operations=list(options.operations),
        cli_command=options.cli_command or metadata.file_name,
        base_url=options.base_url or "https://api.example.com",
        auth_type=options.auth_type,
        variant=variant,
    )
    emitter = FileEmitter(adapter, metadata, context, renderer)

    await emitter.emit(claude_file(metadata, [index_file.path, *(f.path for f in files)]))
    await emitter.emit(index_file)
    await emitter.emit_all(files)
    return emitter.result()
