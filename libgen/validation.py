"""Input schemas for every generator.

Raw caller options (CLI flags, programmatic dicts) are decoded here before
anything else happens.  A failure becomes a single
:class:`~libgen.errors.ValidationError` naming each bad field; nothing has
touched the filesystem at that point.
"""

from __future__ import annotations

import re
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from libgen.errors import ValidationError
from libgen.metadata import LibraryType
from libgen.platform import PlatformType
from libgen.scaffold.provider_gen import ProviderOperation, ProviderType
from libgen.utils import parse_csv

_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9 _-]*$")


def check_name(value: str) -> str:
    """Reject names that cannot become every casing variant.

    Raises:
        ValueError: With the reason, for pydantic to attach to the field.
    """
    if not value:
        raise ValueError("must not be empty")
    if not value[0].isalpha():
        raise ValueError("must start with a letter")
    if not _NAME_PATTERN.match(value):
        raise ValueError("may only contain letters, digits, spaces, hyphens and underscores")
    return value


def check_names(values: list[str]) -> list[str]:
    for value in values:
        try:
            check_name(value)
        except ValueError as exc:
            raise ValueError(f"{value!r} {exc}") from None
    return values


# ---------------------------------------------------------------------------
# Base schema
# ---------------------------------------------------------------------------


class GeneratorInput(BaseModel):
    """Fields accepted by every generator."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    dry_run: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return check_name(value)

    @field_validator("description")
    @classmethod
    def _blank_description_is_none(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> list[str]:
        return parse_csv(value)


class SubModuleInput(BaseModel):
    include_sub_modules: bool = False
    sub_modules: list[str] = Field(default_factory=list)

    @field_validator("sub_modules", mode="before")
    @classmethod
    def _split_sub_modules(cls, value: Any) -> list[str]:
        return parse_csv(value)

    @field_validator("sub_modules")
    @classmethod
    def _check_sub_module_names(cls, value: list[str]) -> list[str]:
        return check_names(value)

    @model_validator(mode="after")
    def _sub_modules_required(self) -> SubModuleInput:
        if self.include_sub_modules and not self.sub_modules:
            raise ValueError("sub_modules is required when include_sub_modules is set")
        return self


# ---------------------------------------------------------------------------
# Per-type schemas
# ---------------------------------------------------------------------------


class ContractInput(GeneratorInput, SubModuleInput):
    include_cqrs: bool = False
    entities: list[str] = Field(default_factory=list)
    types_database_package: str | None = None

    @field_validator("entities", mode="before")
    @classmethod
    def _split_entities(cls, value: Any) -> list[str]:
        return parse_csv(value)

    @field_validator("entities")
    @classmethod
    def _check_entity_names(cls, value: list[str]) -> list[str]:
        return check_names(value)


class DataAccessInput(GeneratorInput, SubModuleInput):
    contract_library: str | None = None
    include_cache: bool = False


class FeatureInput(GeneratorInput, SubModuleInput):
    data_access_library: str | None = None
    scope: Literal["shared", "server", "client", "edge"] = "shared"
    platform: PlatformType | None = None
    include_client_server: bool | None = None
    include_cqrs: bool = False
    include_rpc: bool = True


class InfraInput(GeneratorInput):
    platform: PlatformType | None = None
    include_client_server: bool | None = None
    providers: list[str] = Field(default_factory=list)

    @field_validator("providers", mode="before")
    @classmethod
    def _split_providers(cls, value: Any) -> list[str]:
        return parse_csv(value)


class ProviderInput(GeneratorInput):
    external_service: str = Field(min_length=1)
    platform: PlatformType | None = None
    provider_type: ProviderType = "sdk"
    operations: list[ProviderOperation] | None = None
    cli_command: str | None = None
    base_url: str | None = None
    auth_type: Literal["api-key", "oauth", "basic", "bearer", "none"] = "api-key"

    @field_validator("operations", mode="before")
    @classmethod
    def _split_operations(cls, value: Any) -> list[str] | None:
        return parse_csv(value) or None


class DomainInput(GeneratorInput, SubModuleInput):
    """Options of a composite contract + data-access + feature request."""

    scope: Literal["shared", "server", "client", "edge"] = "shared"
    include_client_server: bool | None = None
    include_cqrs: bool = False
    include_cache: bool = False


INPUT_SCHEMAS: Mapping[LibraryType, type[GeneratorInput]] = {
    LibraryType.CONTRACT: ContractInput,
    LibraryType.DATA_ACCESS: DataAccessInput,
    LibraryType.FEATURE: FeatureInput,
    LibraryType.INFRA: InfraInput,
    LibraryType.PROVIDER: ProviderInput,
}


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _failures(exc: PydanticValidationError) -> list[tuple[str, str]]:
    failures = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "options"
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        failures.append((field, message))
    return failures


def decode(schema: type[BaseModel], raw: Mapping[str, Any] | None, subject: str) -> Any:
    """Validate *raw* against *schema*, raising :class:`ValidationError` on failure."""
    try:
        return schema.model_validate(dict(raw or {}))
    except PydanticValidationError as exc:
        raise ValidationError(_failures(exc), subject=subject) from exc


def validate_options(library_type: LibraryType | str, raw: Mapping[str, Any] | None) -> GeneratorInput:
    """Decode raw options for *library_type*.

    Raises:
        ValidationError: If the library type is unknown or any field is invalid.
    """
    try:
        library_type = LibraryType(library_type)
    except ValueError:
        raise ValidationError.single(
            "library_type", f"unknown library type {library_type!r}", subject="request"
        ) from None
    return decode(INPUT_SCHEMAS[library_type], raw, f"{library_type.value} options")


def validate_domain_options(raw: Mapping[str, Any] | None) -> DomainInput:
    return decode(DomainInput, raw, "domain options")
