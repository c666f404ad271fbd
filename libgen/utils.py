"""Shared utility functions for libgen.

Rich-based console reporting, JSON helpers and the small string helpers the
option parsers share.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# String helpers
# ---------------------------------------------------------------------------


def parse_csv(value: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated option into trimmed, non-empty items.

    Already-split iterables are accepted as well, so callers can pass either
    ``"a, b"`` or ``["a", "b"]``.  Order is preserved, duplicates are dropped.
    """
    if value is None:
        return []
    raw = value.split(",") if isinstance(value, str) else list(value)
    items: list[str] = []
    for item in raw:
        item = str(item).strip()
        if item and item not in items:
            items.append(item)
    return items


def dedupe(items: Iterable[str]) -> list[str]:
    """Return *items* without duplicates, keeping first occurrences."""
    return list(dict.fromkeys(items))


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        return {"_root": data}
    return data


def dump_json(data: dict[str, Any] | list[Any]) -> str:
    """Serialise *data* as stable, pretty-printed JSON with a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_stage_header(label: str) -> None:
    """Print a full-width rule announcing a generation stage."""
    console.print()
    console.print(Rule(f"[bold bright_green] {label} [/bold bright_green]", style="bright_green"))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_file_list(paths: list[str], title: str = "Files generated") -> None:
    """Print generated paths as a numbered table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Path")
    for index, path in enumerate(paths, start=1):
        table.add_row(str(index), path)
    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]", highlight=False)


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def print_info(message: str) -> None:
    """Print a plain progress line."""
    console.print(escape(message), highlight=False)
