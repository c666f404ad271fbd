"""Tests for logging setup and the shared utility helpers.

Tests cover:
- Logger naming under the libgen hierarchy
- configure_logging installing a single rich handler plus an optional file sink
- parse_csv, dedupe and dump_json
"""

from __future__ import annotations

import json
import logging

import pytest
from rich.logging import RichHandler

from libgen.logging import configure_logging, get_logger
from libgen.utils import dedupe, dump_json, parse_csv

pytestmark = pytest.mark.unit


class TestLogging:
    def test_get_logger_names(self):
        assert get_logger().name == "libgen"
        assert get_logger("executor").name == "libgen.executor"

    def test_configure_logging_installs_one_rich_handler(self, restore_logging):
        configure_logging()
        configure_logging(verbose=True)
        rich_handlers = [h for h in restore_logging.handlers if isinstance(h, RichHandler)]
        assert len(rich_handlers) == 1
        assert restore_logging.level == logging.DEBUG

    def test_configure_logging_with_file(self, restore_logging, tmp_path):
        log_file = tmp_path / "libgen.log"
        logger = configure_logging(log_file=log_file)
        get_logger("test").info("hello file")
        for handler in logger.handlers:
            handler.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
        assert logger.level == logging.INFO


class TestParseCsv:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, []),
            ("", []),
            ("a, b ,,c", ["a", "b", "c"]),
            ("a,a,b", ["a", "b"]),
            (["x", " y ", ""], ["x", "y"]),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_csv(value) == expected


class TestHelpers:
    def test_dedupe_keeps_first(self):
        assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_dump_json_is_stable(self):
        text = dump_json({"name": "@myorg/x", "deps": {"effect": "^3"}})
        assert text.endswith("}\n")
        assert json.loads(text) == {"name": "@myorg/x", "deps": {"effect": "^3"}}
        assert '  "name": "@myorg/x"' in text
