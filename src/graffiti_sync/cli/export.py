"""Export command for graffiti-sync CLI.

Commands:
- export: Write stored slots as CSV
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from graffiti_sync.cli.options import db_url_option
from graffiti_sync.core.types import EpochFilter
from graffiti_sync.server.database import Database
from graffiti_sync.server.export import CsvExporter
from graffiti_sync.sync.types import PersistenceError


@click.command()
@db_url_option
@click.option("--epoch", "-e", type=click.IntRange(min=0), default=None, help="Only this epoch.")
@click.option(
    "--onwards",
    is_flag=True,
    help="With --epoch, also export every later epoch.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to this file instead of stdout.",
)
def export(db_url: str, epoch: int | None, onwards: bool, output: Path | None) -> None:
    """Export stored graffiti slots as CSV."""
    if onwards and epoch is None:
        raise click.UsageError("--onwards requires --epoch")

    try:
        db = Database(db_url)
        try:
            body = CsvExporter(db).export(EpochFilter.for_epoch(epoch, onwards))
        finally:
            db.close()
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output is None:
        click.echo(body, nl=False)
    else:
        output.write_text(body, encoding="utf-8")
        click.echo(f"Wrote {output}", err=True)
