"""Plumbing shared by every core generator.

A generator describes each file it produces as a :class:`SourceFile` (target
path, body template, header and imports) and hands it to a
:class:`FileEmitter`, which renders it through the
:class:`~libgen.scaffold.builder.TemplateBuilder`, writes it through the
adapter and records the path for the :class:`GeneratorResult`.
"""

from __future__ import annotations

import asyncio
from pathlib import PurePosixPath
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field

from libgen.filesystem.adapter import FileSystemAdapter
from libgen.logging import get_logger
from libgen.metadata import LibraryMetadata
from libgen.naming import NamingVariants, create_naming_variants
from libgen.scaffold.builder import ImportSpec, TemplateBuilder
from libgen.scaffold.templates import TemplateRenderer, default_renderer
from libgen.utils import parse_csv

logger = get_logger("scaffold")


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class GeneratorResult(BaseModel):
    """What a core generator produced."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    project_root: str
    source_root: str
    package_name: str
    files_generated: tuple[str, ...] = ()

    def with_files_prepended(self, paths: Iterable[str]) -> GeneratorResult:
        """Return a copy whose file list starts with *paths*."""
        merged = list(dict.fromkeys([*paths, *self.files_generated]))
        return self.model_copy(update={"files_generated": tuple(merged)})


# ---------------------------------------------------------------------------
# Source file description
# ---------------------------------------------------------------------------


def imp(source: str, *names: str, type_only: bool = False) -> ImportSpec:
    """Shorthand for an :class:`ImportSpec`."""
    return ImportSpec(from_=source, imports=names, is_type_only=type_only)


class SourceFile(BaseModel):
    """Declarative description of one generated file.

    Files without a ``title`` (markdown, JSON) are written as the raw body.
    """

    path: str
    template: str | None = None
    content: str | None = None
    title: str | None = None
    description: str = ""
    module: str | None = None
    imports: tuple[ImportSpec, ...] = ()
    section: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)

    def render(self, renderer: TemplateRenderer, base_context: dict[str, Any]) -> str:
        if self.content is not None:
            body = self.content
        elif self.template is not None:
            body = renderer.render(self.template, {**base_context, **self.context})
        else:
            raise ValueError(f"{self.path} has neither a template nor content")

        if self.title is None:
            return body if body.endswith("\n") else body + "\n"

        builder = TemplateBuilder()
        builder.add_file_header(self.title, self.description, self.module)
        if self.imports:
            builder.add_imports(self.imports)
        if self.section:
            builder.add_section_comment(self.section)
        builder.add_raw(body)
        return builder.to_string()


def base_context(metadata: LibraryMetadata, **extra: Any) -> dict[str, Any]:
    """Template context shared by every file of one library."""
    context = metadata.model_dump(mode="json")
    context["lib_root"] = metadata.lib_root
    context.update(extra)
    return context


def module_path(metadata: LibraryMetadata, path: str) -> str:
    """``@myorg/contract-user`` + ``.../src/lib/errors.ts`` -> ``@myorg/contract-user/errors``."""
    relative = PurePosixPath(path).relative_to(metadata.source_root)
    parts = list(relative.with_suffix("").parts)
    if parts and parts[0] == "lib":
        parts = parts[1:]
    if parts and parts[-1] == "index":
        parts = parts[:-1]
    return "/".join([metadata.package_name, *parts])


def parse_sub_modules(value: str | list[str] | None) -> list[NamingVariants]:
    """Parse a comma-separated sub-module list into naming variants."""
    return [create_naming_variants(name) for name in parse_csv(value)]


# ---------------------------------------------------------------------------
# Shared file shapes
# ---------------------------------------------------------------------------


def barrel_file(path: str, title: str, module: str, exports: list[dict[str, Any]], description: str = "") -> SourceFile:
    """An ``index.ts``-style re-export file."""
    return SourceFile(
        path=path,
        template="shared/barrel.ts.j2",
        title=title,
        description=description or "Public exports.",
        module=module,
        context={"exports": exports},
    )


def errors_file(
    path: str,
    title: str,
    module: str,
    errors: list[dict[str, Any]],
    union_name: str,
    serializable: bool = False,
    description: str = "",
) -> SourceFile:
    """A file of tagged error classes plus their union type."""
    return SourceFile(
        path=path,
        template="shared/errors.ts.j2",
        title=title,
        description=description or "Typed errors. Use Data.TaggedError inside a process and Schema.TaggedError across RPC boundaries.",
        module=module,
        imports=(imp("effect", "Schema" if serializable else "Data"),),
        section="Errors",
        context={"errors": errors, "union_name": union_name, "serializable": serializable},
    )


def service_file(
    path: str,
    title: str,
    module: str,
    service: dict[str, Any],
    imports: Iterable[ImportSpec] = (),
    description: str = "",
) -> SourceFile:
    """An Effect ``Context.Tag`` service with Live and Test layers."""
    return SourceFile(
        path=path,
        template="shared/service.ts.j2",
        title=title,
        description=description or service.get("description", ""),
        module=module,
        imports=(imp("effect", "Context", "Effect", "Layer"), *imports),
        section="Service",
        context={"service": service},
    )


def service_spec_file(path: str, title: str, subject: str, subject_module: str, methods: list[str] = ()) -> SourceFile:
    """A vitest spec exercising a service's Test layer."""
    return SourceFile(
        path=path,
        template="shared/service-spec.ts.j2",
        title=title,
        description=f"Tests for {subject}.",
        imports=(
            imp("@effect/vitest", "describe", "expect", "it"),
            imp("effect", "Effect"),
            imp(subject_module, subject),
        ),
        context={"subject": subject, "methods": list(methods)},
    )


def method(name: str, params: str, returns: str, test_value: str | None = None, error: str | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": name, "params": params, "returns": returns}
    if test_value is not None:
        entry["test_value"] = test_value
    if error is not None:
        entry["error"] = error
    return entry


def claude_file(metadata: LibraryMetadata, layout: list[str], **context: Any) -> SourceFile:
    """The ``CLAUDE.md`` guide written at every library root."""
    relative = [str(PurePosixPath(path).relative_to(metadata.project_root)) for path in layout]
    return SourceFile(
        path=f"{metadata.project_root}/CLAUDE.md",
        template="shared/CLAUDE.md.j2",
        context={"layout": relative, **context},
    )


# ---------------------------------------------------------------------------
# FileEmitter
# ---------------------------------------------------------------------------


class FileEmitter:
    """Renders and writes files for one generator run.

    Directories are created (once each) before the first file beneath them
    is written.  Every successfully written path is recorded in order.
    """

    def __init__(
        self,
        adapter: FileSystemAdapter,
        metadata: LibraryMetadata,
        context: dict[str, Any] | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.adapter = adapter
        self.metadata = metadata
        self.context = context if context is not None else base_context(metadata)
        self.renderer = renderer or default_renderer()
        self._files: list[str] = []
        self._directories: set[str] = set()

    @property
    def files(self) -> list[str]:
        return list(self._files)

    async def ensure_directories(self, *paths: str) -> None:
        for path in paths:
            if path and path not in self._directories:
                await self.adapter.make_directory(path)
                self._directories.add(path)

    def _record(self, path: str) -> None:
        if path not in self._files:
            self._files.append(path)

    async def emit(self, source: SourceFile) -> str:
        """Render and write a single file."""
        content = source.render(self.renderer, self.context)
        await self.ensure_directories(str(PurePosixPath(source.path).parent))
        await self.adapter.write_file(source.path, content)
        logger.debug("Generated %s", source.path)
        self._record(source.path)
        return source.path

    async def emit_all(self, sources: Iterable[SourceFile]) -> None:
        """Write *sources* one after another, in order."""
        for source in sources:
            await self.emit(source)

    async def emit_batch(self, sources: Iterable[SourceFile]) -> None:
        """Write structurally independent files concurrently.

        All parent directories are created first; the writes themselves are
        issued together.  Every write is awaited even when one fails: the
        files that were written are recorded, then the first error is raised.
        """
        sources = list(sources)
        rendered = [(source.path, source.render(self.renderer, self.context)) for source in sources]
        await self.ensure_directories(*dict.fromkeys(str(PurePosixPath(path).parent) for path, _ in rendered))
        outcomes = await asyncio.gather(
            *(self.adapter.write_file(path, content) for path, content in rendered),
            return_exceptions=True,
        )
        failures: list[BaseException] = []
        for (path, _), outcome in zip(rendered, outcomes):
            if isinstance(outcome, BaseException):
                failures.append(outcome)
                continue
            logger.debug("Generated %s", path)
            self._record(path)
        if failures:
            raise failures[0]

    def result(self) -> GeneratorResult:
        return GeneratorResult(
            project_name=self.metadata.project_name,
            project_root=self.metadata.project_root,
            source_root=self.metadata.source_root,
            package_name=self.metadata.package_name,
            files_generated=tuple(self._files),
        )


def workspace_package(metadata: LibraryMetadata, library_type: str, file_name: str) -> str:
    """Package name of a sibling library in the same scope."""
    return f"{metadata.scope}/{library_type}-{file_name}"
