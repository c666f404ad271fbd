"""Tests for the feature library generator.

Tests cover:
- Baseline (universal platform) file set and order
- Platform gating of client hooks/atoms
- RPC opt-out, CQRS scaffolding and the sub-module command bus
- Data-access wiring in the service and its layers
"""

from __future__ import annotations

import pytest

from libgen.scaffold.feature_gen import FeatureOptions, generate_feature

pytestmark = pytest.mark.unit

CORE = [
    "CLAUDE.md",
    "src/lib/shared/errors.ts",
    "src/lib/shared/types.ts",
    "src/lib/shared/schemas.ts",
    "src/lib/server/services/service.ts",
    "src/lib/server/services/layers.ts",
    "src/lib/server/services/index.ts",
    "src/lib/server/service.spec.ts",
    "src/lib/server/events/publisher.ts",
    "src/lib/server/events/index.ts",
    "src/lib/server/jobs/queue.ts",
    "src/lib/server/jobs/index.ts",
]
RPC = ["src/lib/rpc/handlers.ts", "src/lib/rpc/router.ts", "src/lib/rpc/errors.ts", "src/lib/rpc/index.ts"]
CLIENT = [
    "src/lib/client/hooks/use-order.ts",
    "src/lib/client/hooks/index.ts",
    "src/lib/client/atoms/order-atoms.ts",
    "src/lib/client/atoms/index.ts",
]
TAIL = ["src/types.ts", "src/index.ts"]


@pytest.fixture
def order(make_metadata):
    return make_metadata("order", "feature")


def _content(adapter, result, relative: str) -> str:
    return adapter.tree.read(f"{result.project_root}/{relative}")


class TestFeatureFiles:
    @pytest.mark.asyncio
    async def test_universal_default(self, tree_adapter, order, relative_paths):
        result = await generate_feature(tree_adapter, FeatureOptions(metadata=order))
        assert relative_paths(result) == [*CORE, *RPC, *CLIENT, *TAIL]
        assert len(result.files_generated) == 22

    @pytest.mark.asyncio
    async def test_node_platform_has_no_client(self, tree_adapter, order, relative_paths):
        result = await generate_feature(tree_adapter, FeatureOptions(metadata=order, platform="node"))
        assert relative_paths(result) == [*CORE, *RPC, *TAIL]
        index = _content(tree_adapter, result, "src/index.ts")
        assert "client" not in index

    @pytest.mark.asyncio
    async def test_rpc_opt_out(self, tree_adapter, order, relative_paths):
        options = FeatureOptions(metadata=order, platform="node", include_rpc=False)
        result = await generate_feature(tree_adapter, options)
        assert relative_paths(result) == [*CORE, *TAIL]
        assert len(result.files_generated) == 14

    @pytest.mark.asyncio
    async def test_client_server_flag_overrides_platform(self, tree_adapter, order, relative_paths):
        options = FeatureOptions(metadata=order, platform="node", include_client_server=True)
        result = await generate_feature(tree_adapter, options)
        assert relative_paths(result) == [*CORE, *RPC, *CLIENT, *TAIL]

    @pytest.mark.asyncio
    async def test_cqrs(self, tree_adapter, order, relative_paths):
        options = FeatureOptions(metadata=order, platform="node", include_cqrs=True)
        result = await generate_feature(tree_adapter, options)
        paths = relative_paths(result)
        cqrs = [path for path in paths if "/cqrs/" in path]
        assert cqrs == [
            "src/lib/server/cqrs/commands/base.ts",
            "src/lib/server/cqrs/commands/index.ts",
            "src/lib/server/cqrs/queries/base.ts",
            "src/lib/server/cqrs/queries/index.ts",
            "src/lib/server/cqrs/operations/executor.ts",
            "src/lib/server/cqrs/operations/index.ts",
            "src/lib/server/cqrs/projections/builder.ts",
            "src/lib/server/cqrs/projections/index.ts",
            "src/lib/server/cqrs/index.ts",
        ]
        assert len(paths) == 18 + 9

    @pytest.mark.asyncio
    async def test_sub_modules_with_cqrs_add_bus(self, tree_adapter, order, relative_paths):
        options = FeatureOptions(
            metadata=order, platform="node", include_cqrs=True,
            include_sub_modules=True, sub_modules=["items", "shipping"],
        )
        result = await generate_feature(tree_adapter, options)
        paths = relative_paths(result)
        assert "src/lib/server/cqrs/bus.ts" in paths
        for sub in ("items", "shipping"):
            for name in ("service", "handlers", "layer", "index"):
                assert f"src/lib/server/services/{sub}/{name}.ts" in paths
        assert paths[-1] == "src/index.ts"

        bus = _content(tree_adapter, result, "src/lib/server/cqrs/bus.ts")
        assert 'export const SUB_MODULES = ["items", "shipping"] as const' in bus
        index = _content(tree_adapter, result, "src/index.ts")
        assert 'export * as Shipping from "./lib/server/services/shipping"' in index


class TestFeatureContent:
    @pytest.mark.asyncio
    async def test_service_without_data_access(self, tree_adapter, order):
        result = await generate_feature(tree_adapter, FeatureOptions(metadata=order))
        service = _content(tree_adapter, result, "src/lib/server/services/service.ts")
        assert 'export class OrderService extends Context.Tag("@myorg/feature-order/OrderService")' in service
        assert "readonly get: (id: string) => Effect.Effect<OrderOutput, OrderServiceError>" in service
        assert "yield* OrderRepository" not in service

    @pytest.mark.asyncio
    async def test_service_with_data_access(self, tree_adapter, order):
        options = FeatureOptions(metadata=order, data_access_library="@myorg/data-access-order")
        result = await generate_feature(tree_adapter, options)
        service = _content(tree_adapter, result, "src/lib/server/services/service.ts")
        assert 'import { OrderRepository } from "@myorg/data-access-order"' in service
        assert "const repository = yield* OrderRepository" in service
        layers = _content(tree_adapter, result, "src/lib/server/services/layers.ts")
        assert "Layer.provide(OrderRepositoryLive)" in layers

    @pytest.mark.asyncio
    async def test_client_hook(self, tree_adapter, order):
        result = await generate_feature(tree_adapter, FeatureOptions(metadata=order))
        hook = _content(tree_adapter, result, "src/lib/client/hooks/use-order.ts")
        assert 'import { useAtomValue, useSetAtom } from "jotai"' in hook
        assert "export function useOrder()" in hook

    @pytest.mark.asyncio
    async def test_infra_dependencies_referenced(self, tree_adapter, order):
        result = await generate_feature(tree_adapter, FeatureOptions(metadata=order))
        publisher = _content(tree_adapter, result, "src/lib/server/events/publisher.ts")
        queue = _content(tree_adapter, result, "src/lib/server/jobs/queue.ts")
        assert '"@myorg/infra-pubsub"' in publisher
        assert '"@myorg/infra-queue"' in queue

    @pytest.mark.asyncio
    async def test_directories_created_once(self, recording_adapter, order):
        options = FeatureOptions(metadata=order, include_cqrs=True, include_sub_modules=True, sub_modules=["items"])
        await generate_feature(recording_adapter, options)
        directories = recording_adapter.directories
        assert len(directories) == len(set(directories))
