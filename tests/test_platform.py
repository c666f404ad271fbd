"""Tests for platform and capability resolution.

Tests cover:
- Default platforms per library type
- Explicit client/server override
- Contracts and repositories never splitting by platform
- Capability gating (cache only for data-access, sub-modules from a list)
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from libgen.metadata import LibraryType
from libgen.platform import (
    Capability,
    CapabilitySet,
    compute_platform_configuration,
    resolve_capabilities,
)

pytestmark = pytest.mark.unit


class TestPlatformConfiguration:
    @pytest.mark.parametrize(
        ("platform", "client", "server"),
        [
            ("node", False, True),
            ("browser", True, False),
            ("universal", True, True),
            ("edge", False, False),
        ],
    )
    def test_platform_implies_targets(self, platform, client, server):
        config = compute_platform_configuration(LibraryType.FEATURE, platform)
        assert config.platform == platform
        assert config.include_client is client
        assert config.include_server is server

    def test_feature_defaults_to_universal(self):
        config = compute_platform_configuration(LibraryType.FEATURE)
        assert config.platform == "universal"
        assert config.include_client_server is True

    @pytest.mark.parametrize("library_type", [LibraryType.INFRA, LibraryType.PROVIDER])
    def test_infra_and_provider_default_to_node(self, library_type):
        config = compute_platform_configuration(library_type)
        assert config.platform == "node"
        assert config.include_client is False
        assert config.include_server is True

    def test_explicit_client_server_overrides_platform(self):
        on = compute_platform_configuration(LibraryType.INFRA, "edge", include_client_server=True)
        assert on.include_client and on.include_server

        off = compute_platform_configuration(LibraryType.FEATURE, "universal", include_client_server=False)
        assert not off.include_client and not off.include_server

    @pytest.mark.parametrize("library_type", [LibraryType.CONTRACT, LibraryType.DATA_ACCESS])
    def test_isomorphic_types_have_no_split(self, library_type):
        config = compute_platform_configuration(library_type, "universal", include_client_server=True)
        assert config.platform is None
        assert config.include_client is False
        assert config.include_server is False


class TestCapabilities:
    def test_feature_defaults(self):
        caps = resolve_capabilities(LibraryType.FEATURE, include_rpc=True)
        assert caps.active == [
            Capability.CLIENT,
            Capability.SERVER,
            Capability.CLIENT_SERVER,
            Capability.RPC,
        ]

    def test_cache_only_for_data_access(self):
        assert Capability.CACHE in resolve_capabilities(LibraryType.DATA_ACCESS, include_cache=True)
        assert Capability.CACHE not in resolve_capabilities(LibraryType.FEATURE, include_cache=True)

    def test_sub_modules_from_list(self):
        assert Capability.SUB_MODULES not in resolve_capabilities(LibraryType.CONTRACT, sub_modules=[])
        assert Capability.SUB_MODULES in resolve_capabilities(LibraryType.CONTRACT, sub_modules=["items"])

    def test_unlisted_capability_is_off(self):
        caps = CapabilitySet(gates={Capability.CQRS: True})
        assert caps.enabled(Capability.CQRS) is True
        assert caps.enabled(Capability.RPC) is False
        assert "cqrs" not in caps

    def test_capability_set_is_frozen(self):
        caps = resolve_capabilities(LibraryType.CONTRACT)
        with pytest.raises(PydanticValidationError):
            caps.gates = {}
