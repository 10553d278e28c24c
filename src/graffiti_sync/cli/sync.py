"""Sync command for graffiti-sync CLI.

Commands:
- sync: Fetch every epoch from the last stored one up to the finalized epoch
"""

from __future__ import annotations

import logging
import sys

import click

from graffiti_sync.cli.options import db_url_option, remote_options
from graffiti_sync.client.api import EpochClient
from graffiti_sync.core.config import DEFAULT_REQUEST_INTERVAL, RemoteConfig, SyncConfig
from graffiti_sync.core.types import ResumePolicy
from graffiti_sync.server.database import Database
from graffiti_sync.sync.engine import SyncEngine
from graffiti_sync.sync.types import PersistenceError, SyncAbortedError


@click.command()
@db_url_option
@remote_options
@click.option(
    "--interval",
    type=click.FloatRange(min=0),
    default=DEFAULT_REQUEST_INTERVAL,
    show_default=True,
    help="Seconds to wait between two epoch fetches.",
)
@click.option(
    "--resume",
    type=click.Choice([p.value for p in ResumePolicy]),
    default=ResumePolicy.INCLUSIVE.value,
    show_default=True,
    help="Fetch the last stored epoch again (inclusive) or start after it.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every epoch.")
def sync(
    db_url: str,
    api_key: str,
    api_base_url: str,
    interval: float,
    resume: str,
    verbose: bool,
) -> None:
    """Sync graffiti slots up to the latest finalized epoch."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        db = Database(db_url)
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    config = SyncConfig(request_interval=interval, resume_policy=ResumePolicy(resume))
    try:
        with EpochClient(RemoteConfig(api_base_url=api_base_url, api_key=api_key)) as client:
            result = SyncEngine(client, db, config).sync()
    except SyncAbortedError as e:
        click.echo(f"Error: {e}", err=True)
        if e.result.epochs:
            click.echo(
                f"Epochs {e.result.epochs[0]}-{e.result.epochs[-1]} were synced before the failure.",
                err=True,
            )
        sys.exit(1)
    finally:
        db.close()

    if not result.epochs:
        click.echo(f"Already up to date (finalized epoch {result.finalized_epoch}).")
        return

    click.echo(
        f"Synced epochs {result.epochs[0]}-{result.epochs[-1]}: "
        f"{len(result.records)} slots with graffiti."
    )
    for error in result.errors:
        click.echo(f"Warning: not stored: {error}", err=True)
