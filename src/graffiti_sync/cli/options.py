"""Shared click options for graffiti-sync commands.

Every option falls back to the same environment variable the server reads.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from graffiti_sync.core.config import DEFAULT_API_BASE_URL
from graffiti_sync.server.database import DEFAULT_DB_URL

db_url_option = click.option(
    "--db-url",
    envvar="DB_CONNECT_STRING",
    default=DEFAULT_DB_URL,
    show_default=True,
    help="SQLAlchemy connection string of the slot store (env: DB_CONNECT_STRING).",
)


def remote_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the explorer API options to a command."""
    func = click.option(
        "--api-base-url",
        envvar="API_BASE_URL",
        default=DEFAULT_API_BASE_URL,
        show_default=True,
        help="Base URL of the explorer epoch API (env: API_BASE_URL).",
    )(func)
    func = click.option(
        "--api-key",
        envvar="API_KEY",
        default="",
        help="Explorer API key (env: API_KEY).",
    )(func)
    return func
