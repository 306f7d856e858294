"""mcpk8s CLI entrypoint."""

from __future__ import annotations

import click

from mcpk8s import __version__


@click.group()
@click.version_option(version=__version__, prog_name="mcpk8s")
def main() -> None:
    """mcpk8s — Kubernetes tools over the Model Context Protocol."""


# Register subcommands
from mcpk8s.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
