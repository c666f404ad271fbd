"""Jinja2 rendering of generated file bodies.

Body text lives as ``.j2`` data under ``libgen/scaffold/templates/``.  The
renderer only produces bodies; headers and import statements are always
assembled by :class:`~libgen.scaffold.builder.TemplateBuilder`.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from libgen.naming import to_class_case, to_constant_case, to_file_case, to_property_case


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders body templates with a generator's context.

    Rendering is deterministic: the same template and context always give
    the same text.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["class_case"] = to_class_case
        self.env.filters["property_case"] = to_property_case
        self.env.filters["file_case"] = to_file_case
        self.env.filters["constant_case"] = to_constant_case

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"contract/ports.ts.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)


@lru_cache(maxsize=1)
def default_renderer() -> TemplateRenderer:
    """Process-wide renderer over the packaged templates."""
    return TemplateRenderer()
