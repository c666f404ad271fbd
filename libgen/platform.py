"""Platform and capability resolution.

Each generator resolves its feature flags into a :class:`CapabilitySet` once,
up front, and then consults only that set when deciding which conditional
files to emit.  The resolution rules are shared across library types; only
the defaults differ.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Literal, Mapping

from pydantic import BaseModel, ConfigDict

from libgen.metadata import LibraryType

PlatformType = Literal["node", "browser", "universal", "edge"]

DEFAULT_PLATFORMS: Mapping[LibraryType, PlatformType] = MappingProxyType({
    LibraryType.FEATURE: "universal",
    LibraryType.INFRA: "node",
    LibraryType.PROVIDER: "node",
})

# Contracts and repositories are isomorphic; they never get a client/server split.
_NO_PLATFORM_SPLIT = frozenset({LibraryType.CONTRACT, LibraryType.DATA_ACCESS})


class Capability(str, Enum):
    CLIENT = "client"
    SERVER = "server"
    CLIENT_SERVER = "client-server"
    CQRS = "cqrs"
    RPC = "rpc"
    CACHE = "cache"
    SUB_MODULES = "sub-modules"
    REGISTER_PROJECT = "register-project"


class CapabilitySet(BaseModel):
    """Immutable capability -> enabled map.  Unlisted capabilities are off."""

    model_config = ConfigDict(frozen=True)

    gates: dict[Capability, bool]

    def enabled(self, capability: Capability) -> bool:
        return self.gates.get(capability, False)

    def __contains__(self, capability: object) -> bool:
        return isinstance(capability, Capability) and self.enabled(capability)

    @property
    def active(self) -> list[Capability]:
        return [cap for cap in Capability if self.enabled(cap)]


class PlatformConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True)

    platform: PlatformType | None
    include_client: bool
    include_server: bool

    @property
    def include_client_server(self) -> bool:
        return self.include_client and self.include_server


def compute_platform_configuration(
    library_type: LibraryType,
    platform: PlatformType | None = None,
    include_client_server: bool | None = None,
) -> PlatformConfiguration:
    """Decide which runtime targets a library should generate code for.

    An explicit ``include_client_server`` overrides the platform; otherwise
    ``node``/``universal`` imply server and ``browser``/``universal`` imply
    client.  ``edge`` enables neither.
    """
    if library_type in _NO_PLATFORM_SPLIT:
        return PlatformConfiguration(platform=None, include_client=False, include_server=False)

    resolved = platform or DEFAULT_PLATFORMS.get(library_type, "node")
    if include_client_server is not None:
        return PlatformConfiguration(
            platform=resolved,
            include_client=include_client_server,
            include_server=include_client_server,
        )
    return PlatformConfiguration(
        platform=resolved,
        include_client=resolved in ("browser", "universal"),
        include_server=resolved in ("node", "universal"),
    )


def resolve_capabilities(
    library_type: LibraryType,
    *,
    platform: PlatformType | None = None,
    include_client_server: bool | None = None,
    include_cqrs: bool = False,
    include_rpc: bool = False,
    include_cache: bool = False,
    sub_modules: list[str] | None = None,
    register_project: bool = False,
) -> CapabilitySet:
    """Resolve caller flags into the capability set for *library_type*."""
    platform_config = compute_platform_configuration(
        library_type, platform, include_client_server
    )
    return CapabilitySet(gates={
        Capability.CLIENT: platform_config.include_client,
        Capability.SERVER: platform_config.include_server,
        Capability.CLIENT_SERVER: platform_config.include_client_server,
        Capability.CQRS: include_cqrs,
        Capability.RPC: include_rpc,
        Capability.CACHE: include_cache and library_type == LibraryType.DATA_ACCESS,
        Capability.SUB_MODULES: bool(sub_modules),
        Capability.REGISTER_PROJECT: register_project,
    })
