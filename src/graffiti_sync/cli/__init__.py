"""Command-line interface for graffiti-sync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- sync: Sync graffiti slots up to the finalized epoch
- export: Write stored slots as CSV
- serve: Run the HTTP server
"""

from __future__ import annotations

import click

from graffiti_sync.cli.export import export
from graffiti_sync.cli.serve import serve
from graffiti_sync.cli.sync import sync


@click.group()
@click.version_option(package_name="graffiti-sync")
def cli() -> None:
    """graffiti-sync - Beacon-chain graffiti ingestion and export."""


cli.add_command(sync)
cli.add_command(export)
cli.add_command(serve)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
]
