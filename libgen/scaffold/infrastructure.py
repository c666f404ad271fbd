"""Project files shared by every library type.

``package.json``, ``tsconfig.json`` and ``README.md`` are written for every
library before its core generator runs; ``project.json`` is added when the
workspace is an Nx workspace.
"""

from __future__ import annotations

from typing import Any

from libgen.config import WorkspaceConfig
from libgen.filesystem.adapter import FileSystemAdapter
from libgen.metadata import LibraryMetadata
from libgen.platform import Capability, CapabilitySet
from libgen.scaffold.common import FileEmitter, SourceFile, base_context
from libgen.scaffold.templates import TemplateRenderer
from libgen.utils import dump_json

LIBRARY_VERSION = "0.0.1"


def package_json(metadata: LibraryMetadata, dependencies: list[str] | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": metadata.package_name,
        "version": LIBRARY_VERSION,
        "description": metadata.description,
        "type": "module",
        "sideEffects": False,
        "exports": {
            ".": {
                "types": "./src/index.ts",
                "import": "./src/index.ts",
            },
            "./types": {
                "types": "./src/types.ts",
                "import": "./src/types.ts",
            },
        },
    }
    if dependencies:
        data["dependencies"] = {name: "workspace:*" for name in sorted(set(dependencies))}
    data["peerDependencies"] = {"effect": "*"}
    return data


def tsconfig_json(metadata: LibraryMetadata) -> dict[str, Any]:
    offset = metadata.offset_from_root
    return {
        "extends": f"{offset}tsconfig.base.json",
        "compilerOptions": {
            "outDir": f"{offset}{metadata.dist_root}",
            "rootDir": "src",
            "composite": True,
            "declaration": True,
        },
        "include": ["src/**/*.ts"],
        "exclude": ["src/**/*.spec.ts"],
    }


def project_json(metadata: LibraryMetadata) -> dict[str, Any]:
    offset = metadata.offset_from_root
    return {
        "name": metadata.project_name,
        "$schema": f"{offset}node_modules/nx/schemas/project-schema.json",
        "sourceRoot": metadata.source_root,
        "projectType": "library",
        "tags": list(metadata.tags),
        "targets": {
            "build": {
                "executor": "@nx/js:tsc",
                "outputs": ["{options.outputPath}"],
                "options": {
                    "outputPath": metadata.dist_root,
                    "main": f"{metadata.source_root}/index.ts",
                    "tsConfig": f"{metadata.project_root}/tsconfig.json",
                },
            },
            "test": {
                "executor": "@nx/vite:test",
                "options": {"passWithNoTests": True},
            },
        },
    }


async def generate_infrastructure_files(
    adapter: FileSystemAdapter,
    metadata: LibraryMetadata,
    config: WorkspaceConfig,
    capabilities: CapabilitySet,
    dependencies: list[str] | None = None,
    renderer: TemplateRenderer | None = None,
) -> list[str]:
    """Write the project files of one library.

    Returns:
        The workspace-relative paths written, in order.
    """
    root = metadata.project_root
    context = base_context(metadata, is_nx=config.is_nx, package_manager=config.package_manager)
    emitter = FileEmitter(adapter, metadata, context, renderer)

    await emitter.ensure_directories(root, metadata.source_root)
    sources = [
        SourceFile(path=f"{root}/package.json", content=dump_json(package_json(metadata, dependencies))),
        SourceFile(path=f"{root}/tsconfig.json", content=dump_json(tsconfig_json(metadata))),
        SourceFile(path=f"{root}/README.md", template="shared/README.md.j2"),
    ]
    if capabilities.enabled(Capability.REGISTER_PROJECT):
        sources.append(SourceFile(path=f"{root}/project.json", content=dump_json(project_json(metadata))))
    await emitter.emit_all(sources)
    return emitter.files
