"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from mcpk8s.protocol.models import ToolInfo

console = Console()


def print_tools_table(tools: list[ToolInfo]) -> None:
    """Pretty-print registered tools as a table."""
    table = Table(title="Registered Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Arguments")

    for tool in tools:
        properties = (tool.input_schema or {}).get("properties", {})
        table.add_row(tool.name, _truncate(tool.description), ", ".join(properties) or "-")

    console.print(table)


def print_tools_json(tools: list[ToolInfo]) -> None:
    payload = [t.model_dump(mode="json", by_alias=True, exclude_unset=True) for t in tools]
    console.print_json(json.dumps(payload))


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
