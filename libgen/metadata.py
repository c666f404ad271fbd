"""Library metadata computation.

Every path, identifier and package name a generator needs is derived here,
once per invocation, from the caller's name and the target library type.
The result is immutable and depends only on its inputs.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from libgen.config import WorkspaceConfig
from libgen.naming import create_naming_variants, to_title
from libgen.utils import dedupe


class LibraryType(str, Enum):
    CONTRACT = "contract"
    DATA_ACCESS = "data-access"
    FEATURE = "feature"
    INFRA = "infra"
    PROVIDER = "provider"

    def __str__(self) -> str:
        return self.value


class LibraryMetadata(BaseModel):
    """Fully derived naming, path and package values for one library."""

    model_config = ConfigDict(frozen=True)

    name: str
    class_name: str
    property_name: str
    file_name: str
    constant_name: str
    library_type: LibraryType
    domain_name: str
    project_name: str
    project_root: str
    source_root: str
    dist_root: str
    package_name: str
    scope: str
    offset_from_root: str
    description: str
    tags: tuple[str, ...]

    @property
    def lib_root(self) -> str:
        """``<source_root>/lib``, where most generated sources live."""
        return f"{self.source_root}/lib"


def offset_from_root(project_root: str) -> str:
    """Return ``"../"`` once per segment of *project_root*.

    ``"libs/data-access/order"`` -> ``"../../../"``
    """
    segments = [segment for segment in project_root.split("/") if segment and segment != "."]
    return "../" * len(segments)


def build_tags(
    library_type: LibraryType,
    file_name: str,
    extra: list[str] | None = None,
    default_tags: list[str] | None = None,
) -> tuple[str, ...]:
    """Compose the ordered, de-duplicated tag set of a library.

    The type-specific defaults come first (``type:<type>`` and
    ``scope:<file_name>``); a caller-supplied ``scope:`` tag replaces the
    default scope tag.
    """
    extra = list(extra or [])
    tags = [f"type:{library_type.value}"]
    if not any(tag.startswith("scope:") for tag in extra):
        tags.append(f"scope:{file_name}")
    tags.extend(default_tags or [])
    tags.extend(extra)
    return tuple(dedupe(tag for tag in tags if tag))


def compute_metadata(
    name: str,
    library_type: LibraryType | str,
    config: WorkspaceConfig,
    *,
    description: str | None = None,
    tags: list[str] | None = None,
) -> LibraryMetadata:
    """Derive :class:`LibraryMetadata` for *name*.

    Args:
        name: Free-form library name as supplied by the caller.
        library_type: Target library type.
        config: Workspace defaults (scope, libraries root, default tags).
        description: Explicit description; defaults to a title-cased one.
        tags: Extra tags appended after the type-specific defaults.

    Raises:
        ValidationError: If *name* is empty.
    """
    library_type = LibraryType(library_type)
    variants = create_naming_variants(name)
    file_name = variants.file_name

    project_root = config.library_root(library_type.value, file_name)
    domain_name = to_title(name)

    return LibraryMetadata(
        name=name,
        class_name=variants.class_name,
        property_name=variants.property_name,
        file_name=file_name,
        constant_name=variants.constant_name,
        library_type=library_type,
        domain_name=domain_name,
        project_name=f"{library_type.value}-{file_name}",
        project_root=project_root,
        source_root=f"{project_root}/src",
        dist_root=f"dist/{project_root}",
        package_name=config.package_name(library_type.value, file_name),
        scope=config.scope,
        offset_from_root=offset_from_root(project_root),
        description=description or f"{domain_name} {library_type.value} library",
        tags=build_tags(library_type, file_name, tags, config.default_tags),
    )
