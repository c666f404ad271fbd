"""Workspace configuration.

A :class:`WorkspaceConfig` carries the workspace-wide defaults every
generator needs (package scope, libraries root, default tags).  It is built
once at startup, either detected from the workspace files or from the
environment, and then passed explicitly into the executor.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from libgen.logging import get_logger
from libgen.utils import load_json, parse_csv

logger = get_logger("config")

DEFAULT_SCOPE = "@myorg"
DEFAULT_LIBRARIES_ROOT = "libs"

_LOCKFILES: tuple[tuple[str, str], ...] = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("package-lock.json", "npm"),
)


class WorkspaceConfig(BaseModel):
    """Workspace-wide defaults threaded through metadata computation."""

    workspace_root: Path = Field(default_factory=Path.cwd)
    scope: str = Field(default=DEFAULT_SCOPE, pattern=r"^@[a-z0-9][a-z0-9._-]*$")
    libraries_root: str = Field(default=DEFAULT_LIBRARIES_ROOT, min_length=1)
    workspace_type: Literal["nx", "standalone"] = "standalone"
    package_manager: Literal["npm", "pnpm", "yarn", "bun"] = "npm"
    default_tags: list[str] = Field(default_factory=list)

    # -- Derived values ---------------------------------------------------

    @property
    def is_nx(self) -> bool:
        return self.workspace_type == "nx"

    def package_name(self, library_type: str, file_name: str) -> str:
        """Return the npm package name for a library, e.g. ``@myorg/infra-cache``."""
        return f"{self.scope}/{library_type}-{file_name}"

    def library_root(self, library_type: str, file_name: str) -> str:
        """Workspace-relative directory of a library."""
        return f"{self.libraries_root}/{library_type}/{file_name}"

    # -- Construction -----------------------------------------------------

    @classmethod
    def detect(cls, workspace_root: str | Path | None = None) -> WorkspaceConfig:
        """Build a config by inspecting the files at *workspace_root*.

        Missing or unreadable workspace files fall back to defaults.
        """
        root = Path(workspace_root or Path.cwd()).resolve()
        values: dict[str, Any] = {"workspace_root": root}

        package_json = _read_package_json(root)
        scope = _scope_from_package_name(package_json.get("name"))
        if scope:
            values["scope"] = scope

        libraries_root = _libraries_root_from_pnpm(root)
        if libraries_root is None:
            libraries_root = _libraries_root_from_workspaces(package_json.get("workspaces"))
        if libraries_root:
            values["libraries_root"] = libraries_root

        if (root / "nx.json").exists():
            values["workspace_type"] = "nx"

        for lockfile, manager in _LOCKFILES:
            if (root / lockfile).exists():
                values["package_manager"] = manager
                break

        config = cls(**values)
        logger.debug(
            "Detected workspace at %s (scope=%s, libraries_root=%s, type=%s)",
            root, config.scope, config.libraries_root, config.workspace_type,
        )
        return config

    @classmethod
    def from_env(cls, workspace_root: str | Path | None = None) -> WorkspaceConfig:
        """Detect the workspace, then apply ``LIBGEN_*`` environment overrides.

        Supported variables: ``LIBGEN_WORKSPACE_ROOT``, ``LIBGEN_SCOPE``,
        ``LIBGEN_LIBRARIES_ROOT`` and ``LIBGEN_DEFAULT_TAGS`` (comma-separated).
        """
        root = workspace_root or os.environ.get("LIBGEN_WORKSPACE_ROOT") or None
        config = cls.detect(root)

        overrides: dict[str, Any] = {}
        if scope := os.environ.get("LIBGEN_SCOPE"):
            overrides["scope"] = scope if scope.startswith("@") else f"@{scope}"
        if libraries_root := os.environ.get("LIBGEN_LIBRARIES_ROOT"):
            overrides["libraries_root"] = libraries_root.strip("/")
        if default_tags := os.environ.get("LIBGEN_DEFAULT_TAGS"):
            overrides["default_tags"] = parse_csv(default_tags)

        if not overrides:
            return config
        return cls(**{**config.model_dump(), **overrides})

    def save(self, path: str | Path) -> None:
        """Persist the config as JSON."""
        Path(path).write_text(self.model_dump_json(indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> WorkspaceConfig:
        """Load a config previously written by :meth:`save`."""
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Detection helpers
# ---------------------------------------------------------------------------


def _read_package_json(root: Path) -> dict[str, Any]:
    try:
        return load_json(root / "package.json")
    except (OSError, json.JSONDecodeError):
        return {}


def _scope_from_package_name(name: Any) -> str | None:
    if isinstance(name, str) and name.startswith("@") and "/" in name:
        return name.split("/", 1)[0]
    return None


def _libraries_root_from_globs(globs: list[Any]) -> str | None:
    # "libs/*" or "libs/**" -> "libs"; "apps/*" is not a libraries root.
    for pattern in globs:
        if not isinstance(pattern, str):
            continue
        head = pattern.split("/", 1)[0].strip()
        if head and "*" not in head and head not in ("apps", "tools"):
            return head
    return None


def _libraries_root_from_pnpm(root: Path) -> str | None:
    try:
        raw = (root / "pnpm-workspace.yaml").read_text(encoding="utf-8")
    except OSError:
        return None
    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError:
        logger.warning("Ignoring unparseable pnpm-workspace.yaml at %s", root)
        return None
    packages = data.get("packages") if isinstance(data, dict) else None
    return _libraries_root_from_globs(packages or [])


def _libraries_root_from_workspaces(workspaces: Any) -> str | None:
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if isinstance(workspaces, list):
        return _libraries_root_from_globs(workspaces)
    return None
