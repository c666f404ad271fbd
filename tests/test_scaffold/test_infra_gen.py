"""Tests for the infrastructure library generator.

Tests cover:
- Concern detection from library names
- Per-concern layouts (cache, database, rpc, observability, generic)
- Client-side files gated by platform
- The provider list file and the generated index
"""

from __future__ import annotations

import pytest

from libgen.scaffold.infra_gen import (
    InfraOptions,
    detect_infra_concern,
    generate_infra,
    provider_for_infra,
)

pytestmark = pytest.mark.unit


def _content(adapter, result, relative: str) -> str:
    return adapter.tree.read(f"{result.project_root}/{relative}")


class TestConcernDetection:
    @pytest.mark.parametrize(
        ("name", "concern"),
        [
            ("cache", "cache"),
            ("redis-cache", "cache"),
            ("database", "database"),
            ("db", "database"),
            ("job-queue", "queue"),
            ("workers", "generic"),
            ("pubsub", "pubsub"),
            ("domain-events", "pubsub"),
            ("rpc", "rpc"),
            ("auth", "auth"),
            ("file-storage", "storage"),
            ("observability", "observability"),
            ("otel", "observability"),
            ("feature-flags", "generic"),
            ("dbx", "generic"),
            ("user_session", "auth"),
        ],
    )
    def test_detect(self, name, concern):
        assert detect_infra_concern(name) == concern

    def test_first_keyword_wins(self):
        assert detect_infra_concern("cache-database") == "cache"
        assert detect_infra_concern("database-cache") == "cache"

    def test_provider_mapping(self):
        assert provider_for_infra("database") == "kysely"
        assert provider_for_infra("cache") is None


class TestInfraLayouts:
    @pytest.mark.asyncio
    async def test_cache(self, tree_adapter, make_metadata, relative_paths):
        result = await generate_infra(tree_adapter, InfraOptions(metadata=make_metadata("cache", "infra")))
        assert relative_paths(result) == [
            "CLAUDE.md",
            "src/index.ts",
            "src/lib/errors.ts",
            "src/lib/service.ts",
            "src/lib/layers.ts",
            "src/types.ts",
            "src/lib/service.spec.ts",
        ]
        service = _content(tree_adapter, result, "src/lib/service.ts")
        assert 'import { Context, Effect, Layer, Option } from "effect"' in service
        assert "readonly get: (key: string) => Effect.Effect<Option.Option<unknown>, CacheError>" in service
        layers = _content(tree_adapter, result, "src/lib/layers.ts")
        assert 'if (env === "test") return CacheService.Test' in layers

    @pytest.mark.asyncio
    async def test_database_depends_on_kysely(self, tree_adapter, make_metadata, relative_paths):
        result = await generate_infra(tree_adapter, InfraOptions(metadata=make_metadata("database", "infra")))
        assert relative_paths(result) == [
            "CLAUDE.md",
            "src/index.ts",
            "src/lib/errors.ts",
            "src/lib/service.ts",
            "src/types.ts",
            "src/lib/service.spec.ts",
        ]
        service = _content(tree_adapter, result, "src/lib/service.ts")
        assert 'import { Kysely } from "@myorg/provider-kysely"' in service
        assert "const kysely = yield* Kysely" in service

    @pytest.mark.asyncio
    async def test_generic_server_only(self, tree_adapter, make_metadata, relative_paths):
        result = await generate_infra(tree_adapter, InfraOptions(metadata=make_metadata("feature-flags", "infra")))
        assert relative_paths(result) == [
            "CLAUDE.md",
            "src/index.ts",
            "src/lib/errors.ts",
            "src/lib/service.ts",
            "src/lib/config.ts",
            "src/lib/memory.ts",
            "src/lib/layers.ts",
            "src/types.ts",
            "src/lib/service.spec.ts",
        ]
        layers = _content(tree_adapter, result, "src/lib/layers.ts")
        assert 'import { FeatureFlagsServiceMemory } from "./memory"' in layers
        types = _content(tree_adapter, result, "src/types.ts")
        assert 'export type { FeatureFlagsConfig } from "./lib/config"' in types

    @pytest.mark.asyncio
    async def test_generic_with_client(self, tree_adapter, make_metadata, relative_paths):
        options = InfraOptions(metadata=make_metadata("feature-flags", "infra"), platform="universal")
        result = await generate_infra(tree_adapter, options)
        paths = relative_paths(result)
        assert "src/lib/layers/client-layers.ts" in paths
        assert "src/lib/client/hooks/use-feature-flags.ts" in paths

    @pytest.mark.asyncio
    async def test_rpc(self, tree_adapter, make_metadata, relative_paths):
        result = await generate_infra(tree_adapter, InfraOptions(metadata=make_metadata("rpc", "infra")))
        paths = relative_paths(result)
        for module in ("core", "transport", "client", "router"):
            assert f"src/lib/{module}.ts" in paths
        for middleware in ("auth", "service-auth", "request-meta", "route-selector"):
            assert f"src/lib/middleware/{middleware}.ts" in paths
        assert "src/lib/hooks.ts" not in paths

        errors = _content(tree_adapter, result, "src/lib/errors.ts")
        assert "export class RpcMiddlewareError" in errors
        index = _content(tree_adapter, result, "src/index.ts")
        assert 'export * from "./lib/middleware"' in index
        assert 'export * from "./lib/middleware/auth"' not in index
        spec = _content(tree_adapter, result, "src/lib/service.spec.ts")
        assert 'import { RpcService } from "./core"' in spec

    @pytest.mark.asyncio
    async def test_rpc_client_hooks(self, tree_adapter, make_metadata, relative_paths):
        options = InfraOptions(metadata=make_metadata("rpc", "infra"), include_client_server=True)
        result = await generate_infra(tree_adapter, options)
        assert "src/lib/hooks.ts" in relative_paths(result)

    @pytest.mark.asyncio
    async def test_observability(self, tree_adapter, make_metadata, relative_paths):
        result = await generate_infra(tree_adapter, InfraOptions(metadata=make_metadata("observability", "infra")))
        paths = relative_paths(result)
        for module in ("provider", "sdk", "supervisor", "config", "presets", "constants", "logging", "metrics"):
            assert f"src/lib/{module}.ts" in paths
        constants = _content(tree_adapter, result, "src/lib/constants.ts")
        assert "OBSERVABILITY_SERVICE_NAME" in constants

    @pytest.mark.asyncio
    async def test_providers_file(self, tree_adapter, make_metadata, relative_paths):
        options = InfraOptions(metadata=make_metadata("cache", "infra"), providers=["redis", "memory"])
        result = await generate_infra(tree_adapter, options)
        assert "src/lib/providers.ts" in relative_paths(result)
        providers = _content(tree_adapter, result, "src/lib/providers.ts")
        assert 'export const CACHE_PROVIDERS = [\n  "redis",\n  "memory",\n] as const' in providers
        index = _content(tree_adapter, result, "src/index.ts")
        assert 'export * from "./lib/providers"' in index

    @pytest.mark.asyncio
    async def test_index_skips_specs_and_types(self, tree_adapter, make_metadata):
        result = await generate_infra(tree_adapter, InfraOptions(metadata=make_metadata("cache", "infra")))
        index = _content(tree_adapter, result, "src/index.ts")
        assert "spec" not in index
        assert '"./types"' not in index
        assert 'export * from "./lib/service"' in index

    @pytest.mark.asyncio
    async def test_claude_mentions_concern(self, tree_adapter, make_metadata):
        result = await generate_infra(tree_adapter, InfraOptions(metadata=make_metadata("job-queue", "infra")))
        guide = _content(tree_adapter, result, "CLAUDE.md")
        assert "- Concern: `queue`." in guide
