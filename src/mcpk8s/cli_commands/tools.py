"""``mcpk8s tools`` — show the tool catalogue without starting the server."""

from __future__ import annotations

import click

from mcpk8s.cli_commands._output import console, print_tools_json, print_tools_table


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def tools(as_json: bool) -> None:
    """List the tools this server exposes."""
    from mcpk8s.app import Application

    catalogue = Application().server.registry.list()
    if not catalogue:
        console.print("[yellow]No tools registered.[/yellow]")
        return

    if as_json:
        print_tools_json(catalogue)
    else:
        print_tools_table(catalogue)
