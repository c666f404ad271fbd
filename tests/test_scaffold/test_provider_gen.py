"""Tests for the provider library generator.

Tests cover:
- Variant detection (kysely, redis, supabase, generic)
- Per-variant file sets and write order
- Operation subsets and provider-type specific methods
- Configuration types for cli / http providers
"""

from __future__ import annotations

import pytest

from libgen.scaffold.provider_gen import ProviderOptions, detect_provider_variant, generate_provider

pytestmark = pytest.mark.unit


def _content(adapter, result, relative: str) -> str:
    return adapter.tree.read(f"{result.project_root}/{relative}")


class TestVariantDetection:
    @pytest.mark.parametrize(
        ("file_name", "service", "variant"),
        [
            ("kysely", "Kysely", "kysely"),
            ("sql", "Kysely Postgres", "kysely"),
            ("redis", "Redis", "redis"),
            ("supabase", "Supabase", "supabase"),
            ("stripe", "Stripe", "generic"),
        ],
    )
    def test_detect(self, file_name, service, variant):
        assert detect_provider_variant(file_name, service) == variant


class TestProviderLayouts:
    @pytest.mark.asyncio
    async def test_generic(self, tree_adapter, make_metadata, relative_paths):
        options = ProviderOptions(metadata=make_metadata("stripe", "provider"), external_service="Stripe")
        result = await generate_provider(tree_adapter, options)
        assert relative_paths(result) == [
            "CLAUDE.md",
            "src/index.ts",
            "src/lib/errors.ts",
            "src/lib/types.ts",
            "src/lib/service.ts",
            "src/lib/validation.ts",
            "src/lib/service.spec.ts",
            "src/types.ts",
        ]
        assert result.package_name == "@myorg/provider-stripe"

    @pytest.mark.asyncio
    async def test_kysely(self, tree_adapter, make_metadata, relative_paths):
        options = ProviderOptions(metadata=make_metadata("kysely", "provider"), external_service="Kysely")
        result = await generate_provider(tree_adapter, options)
        assert relative_paths(result) == [
            "CLAUDE.md",
            "src/index.ts",
            "src/lib/errors.ts",
            "src/lib/types.ts",
            "src/lib/interface.ts",
            "src/lib/service.ts",
            "src/lib/validation.ts",
            "src/lib/service.spec.ts",
            "src/types.ts",
        ]
        interface = _content(tree_adapter, result, "src/lib/interface.ts")
        assert 'import type { Kysely } from "kysely"' in interface
        errors = _content(tree_adapter, result, "src/lib/errors.ts")
        assert "export type KyselyProviderError =" in errors

    @pytest.mark.asyncio
    async def test_redis(self, tree_adapter, make_metadata, relative_paths):
        options = ProviderOptions(metadata=make_metadata("redis", "provider"), external_service="Redis")
        result = await generate_provider(tree_adapter, options)
        assert relative_paths(result) == [
            "CLAUDE.md",
            "src/index.ts",
            "src/lib/errors.ts",
            "src/lib/types.ts",
            "src/lib/redis.ts",
            "src/lib/cache.ts",
            "src/lib/pubsub.ts",
            "src/lib/queue.ts",
            "src/lib/service.spec.ts",
            "src/types.ts",
        ]
        spec = _content(tree_adapter, result, "src/lib/service.spec.ts")
        assert 'import { Redis } from "./redis"' in spec
        index = _content(tree_adapter, result, "src/index.ts")
        assert 'export * from "./lib/queue"' in index
        assert "spec" not in index

    @pytest.mark.asyncio
    async def test_supabase(self, tree_adapter, make_metadata, relative_paths):
        options = ProviderOptions(metadata=make_metadata("supabase", "provider"), external_service="Supabase")
        result = await generate_provider(tree_adapter, options)
        paths = relative_paths(result)
        for module in ("client", "auth", "storage"):
            assert f"src/lib/{module}.ts" in paths


class TestProviderContent:
    @pytest.mark.asyncio
    async def test_operation_subset(self, tree_adapter, make_metadata):
        options = ProviderOptions(
            metadata=make_metadata("stripe", "provider"), external_service="Stripe", operations=["create", "read"]
        )
        result = await generate_provider(tree_adapter, options)
        service = _content(tree_adapter, result, "src/lib/service.ts")
        assert "readonly create: (input: unknown)" in service
        assert "readonly read: (id: string)" in service
        assert "readonly delete:" not in service
        types = _content(tree_adapter, result, "src/lib/types.ts")
        assert "export interface CreateStripeParams" in types
        assert "DeleteStripeParams" not in types

    @pytest.mark.asyncio
    async def test_cli_provider(self, tree_adapter, make_metadata):
        options = ProviderOptions(
            metadata=make_metadata("gh", "provider"), external_service="GitHub CLI",
            provider_type="cli", cli_command="gh",
        )
        result = await generate_provider(tree_adapter, options)
        service = _content(tree_adapter, result, "src/lib/service.ts")
        assert "readonly execute: (args: ReadonlyArray<string>) => Effect.Effect<string, GhProviderError>" in service
        types = _content(tree_adapter, result, "src/lib/types.ts")
        assert "readonly command: string" in types
        assert 'command: "gh",' in types

    @pytest.mark.asyncio
    async def test_http_provider(self, tree_adapter, make_metadata):
        options = ProviderOptions(
            metadata=make_metadata("billing", "provider"), external_service="Billing API",
            provider_type="http", base_url="https://billing.example.com", auth_type="bearer",
        )
        result = await generate_provider(tree_adapter, options)
        types = _content(tree_adapter, result, "src/lib/types.ts")
        assert 'baseUrl: "https://billing.example.com",' in types
        assert 'readonly auth: { readonly type: "bearer"; readonly credential: string }' in types

    @pytest.mark.asyncio
    async def test_graphql_adds_request(self, tree_adapter, make_metadata):
        options = ProviderOptions(
            metadata=make_metadata("cms", "provider"), external_service="CMS", provider_type="graphql",
        )
        result = await generate_provider(tree_adapter, options)
        service = _content(tree_adapter, result, "src/lib/service.ts")
        assert "readonly request: (document: string" in service

    @pytest.mark.asyncio
    async def test_errors_name_external_service(self, tree_adapter, make_metadata):
        options = ProviderOptions(metadata=make_metadata("stripe", "provider"), external_service="Stripe")
        result = await generate_provider(tree_adapter, options)
        errors = _content(tree_adapter, result, "src/lib/errors.ts")
        assert " * Errors raised while talking to Stripe." in errors
        guide = _content(tree_adapter, result, "CLAUDE.md")
        assert "Wraps `Stripe` behind an Effect service" in guide
