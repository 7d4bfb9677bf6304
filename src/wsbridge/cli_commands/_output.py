"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wsbridge.protocol.models import ToolResponse  # noqa: TC001
from wsbridge.utils.log import truncate

console = Console()


def print_tools_table(tools: list[dict[str, Any]]) -> None:
    """Pretty-print ``tools/list`` entries as a table."""
    table = Table(title="Registered Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Title")
    table.add_column("Hints")
    table.add_column("Description")

    for tool in tools:
        hints = ", ".join(k for k, v in tool.get("annotations", {}).items() if v) or "-"
        table.add_row(
            tool.get("name", "?"),
            tool.get("title", ""),
            hints,
            truncate(tool.get("description", ""), 80),
        )

    console.print(table)


def print_envelope(envelope: ToolResponse, *, as_json: bool = False) -> None:
    """Print a tool result: raw wire JSON, or its text with an error marker."""
    if as_json:
        console.print_json(json.dumps(envelope.to_wire(), ensure_ascii=False))
        return

    if envelope.is_error:
        console.print(f"[red]Error:[/red] {escape(envelope.text)}")
        return

    console.print(envelope.text, markup=False, highlight=False)
