"""Structured assembly of one generated TypeScript source file.

A :class:`TemplateBuilder` accumulates an ordered list of fragments (file
header, one merged import group, section comments, raw blocks) and renders
them exactly once.  Headers and imports are always formatted here, so every
generator emits them identically, and the output never depends on anything
but the fragment sequence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

SECTION_RULE = "// " + "=" * 76


class FragmentKind(str, Enum):
    HEADER = "header"
    IMPORT_GROUP = "import-group"
    SECTION_COMMENT = "section-comment"
    RAW_BLOCK = "raw-block"
    BLANK = "blank"


class ImportSpec(BaseModel):
    """One import statement request: ``import {imports} from "from_"``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str = Field(alias="from")
    imports: tuple[str, ...]
    is_type_only: bool = False


@dataclass
class Fragment:
    kind: FragmentKind
    text: str = ""
    # Fragments that are spaced get exactly one blank line before them.
    spaced: bool = True


@dataclass
class _ImportGroup:
    # (module, is_type_only) -> specifiers
    entries: dict[tuple[str, bool], set[str]] = field(default_factory=dict)

    def merge(self, spec: ImportSpec) -> None:
        self.entries.setdefault((spec.from_, spec.is_type_only), set()).update(spec.imports)

    def render(self) -> str:
        lines = []
        # sorted by source path; a value import precedes the type-only import of the same module
        for module, type_only in sorted(self.entries):
            names = sorted(self.entries[(module, type_only)])
            if not names:
                lines.append(f'import "{module}"')
                continue
            keyword = "import type" if type_only else "import"
            lines.append(f'{keyword} {{ {", ".join(names)} }} from "{module}"')
        return "\n".join(lines)


class TemplateBuilder:
    """Accumulates the fragments of one source file.

    Example::

        builder = TemplateBuilder()
        builder.add_file_header(title="Order Errors", description="...", module="@myorg/contract-order/errors")
        builder.add_imports([ImportSpec(from_="effect", imports=("Data",))])
        builder.add_section_comment("Errors")
        builder.add_raw(body)
        text = builder.to_string()
    """

    def __init__(self) -> None:
        self._fragments: list[Fragment] = []
        self._imports: _ImportGroup | None = None
        self._rendered = False

    def _append(self, fragment: Fragment) -> TemplateBuilder:
        if self._rendered:
            raise RuntimeError("TemplateBuilder has already been rendered")
        self._fragments.append(fragment)
        return self

    # -- Fragments --------------------------------------------------------

    def add_file_header(self, title: str, description: str = "", module: str | None = None) -> TemplateBuilder:
        """Add the canonical doc-comment block that opens every file."""
        lines = ["/**", f" * {title}"]
        if description:
            lines.append(" *")
            lines.extend(f" * {line}".rstrip() for line in description.strip().splitlines())
        if module:
            lines.append(" *")
            lines.append(f" * @module {module}")
        lines.append(" */")
        return self._append(Fragment(FragmentKind.HEADER, "\n".join(lines)))

    def add_imports(self, specs: Iterable[ImportSpec | dict]) -> TemplateBuilder:
        """Merge import requests into the file's single import group.

        The group is placed where the first call happens; later calls only
        add specifiers to it.
        """
        if self._rendered:
            raise RuntimeError("TemplateBuilder has already been rendered")
        if self._imports is None:
            self._imports = _ImportGroup()
            self._fragments.append(Fragment(FragmentKind.IMPORT_GROUP))
        for spec in specs:
            if not isinstance(spec, ImportSpec):
                spec = ImportSpec.model_validate(spec)
            self._imports.merge(spec)
        return self

    def add_section_comment(self, label: str) -> TemplateBuilder:
        text = "\n".join([SECTION_RULE, f"// {label}", SECTION_RULE])
        return self._append(Fragment(FragmentKind.SECTION_COMMENT, text))

    def add_raw(self, text: str, spaced: bool = True) -> TemplateBuilder:
        """Add caller-assembled text.  Surrounding blank lines are trimmed."""
        return self._append(Fragment(FragmentKind.RAW_BLOCK, text.strip("\n"), spaced=spaced))

    def add_blank_line(self) -> TemplateBuilder:
        return self._append(Fragment(FragmentKind.BLANK, "", spaced=False))

    # -- Rendering --------------------------------------------------------

    @property
    def fragments(self) -> list[Fragment]:
        return list(self._fragments)

    def _text(self, fragment: Fragment) -> str:
        if fragment.kind is FragmentKind.IMPORT_GROUP:
            return self._imports.render() if self._imports else ""
        return fragment.text

    def to_string(self) -> str:
        """Serialise every fragment in insertion order.  Callable once."""
        if self._rendered:
            raise RuntimeError("TemplateBuilder has already been rendered")
        self._rendered = True

        parts: list[str] = []
        previous: Fragment | None = None
        for fragment in self._fragments:
            text = self._text(fragment)
            if fragment.kind is not FragmentKind.BLANK and not text:
                continue
            if previous is not None:
                parts.append("\n\n" if fragment.spaced and previous.spaced else "\n")
            parts.append(text)
            previous = fragment
        return "".join(parts).rstrip("\n") + "\n"
