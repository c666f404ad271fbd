"""Tests for the jinja2 body renderer.

Tests cover:
- Packaged template loading
- Casing filters
- The shared barrel template
- Process-wide renderer caching
"""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import TemplateNotFound

from libgen.scaffold.templates import TemplateRenderer, default_renderer

pytestmark = pytest.mark.unit


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


def _renderer_for(template_dir: Path, name: str, source: str) -> TemplateRenderer:
    (template_dir / name).write_text(source, encoding="utf-8")
    return TemplateRenderer(template_dir)


class TestTemplateRenderer:
    @pytest.mark.parametrize(
        "template_path",
        ["shared/barrel.ts.j2", "contract/rpc-definitions.ts.j2", "data-access/repository.ts.j2"],
    )
    def test_packaged_templates_are_loadable(self, renderer, template_path):
        assert renderer.env.get_template(template_path) is not None

    def test_unknown_template_raises(self, renderer):
        with pytest.raises(TemplateNotFound):
            renderer.render("shared/missing.ts.j2", {})

    def test_custom_directory(self, tmp_path):
        renderer = _renderer_for(tmp_path, "hello.ts.j2", "export const {{ name | property_case }} = 1\n")
        assert renderer.render("hello.ts.j2", {"name": "user profile"}) == "export const userProfile = 1\n"

    @pytest.mark.parametrize(
        ("filter_name", "expected"),
        [
            ("class_case", "UserProfile"),
            ("property_case", "userProfile"),
            ("file_case", "user-profile"),
            ("constant_case", "USER_PROFILE"),
        ],
    )
    def test_casing_filters(self, tmp_path, filter_name, expected):
        renderer = _renderer_for(tmp_path, "name.j2", "{{ n | %s }}" % filter_name)
        assert renderer.render("name.j2", {"n": "user profile"}) == expected

    def test_no_html_escaping(self, tmp_path):
        renderer = _renderer_for(tmp_path, "type.ts.j2", "{{ t }}")
        assert renderer.render("type.ts.j2", {"t": "Array<A & B>"}) == "Array<A & B>"

    def test_barrel(self, renderer):
        text = renderer.render(
            "shared/barrel.ts.j2",
            {
                "exports": [
                    {"path": "./lib/errors"},
                    {"names": ["A", "B"], "path": "./lib/types", "type_only": True},
                    {"alias": "OrderRpc", "path": "./lib/rpc", "comment": "RPC"},
                ]
            },
        )
        assert text == (
            'export * from "./lib/errors"\n'
            'export type { A, B } from "./lib/types"\n'
            "\n"
            "// RPC\n"
            'export * as OrderRpc from "./lib/rpc"\n'
        )

    def test_default_renderer_is_cached(self):
        assert default_renderer() is default_renderer()
