"""Serve command for graffiti-sync CLI.

Commands:
- serve: Run the HTTP server
"""

from __future__ import annotations

import click


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", "-p", type=int, envvar="PORT", default=8000, show_default=True)
def serve(host: str, port: int) -> None:
    """Run the sync/export HTTP server.

    Reads API_KEY, API_BASE_URL, DB_CONNECT_STRING and
    GRAFFITI_SYNC_INTERVAL_MINUTES from the environment.
    """
    import uvicorn

    uvicorn.run(
        "graffiti_sync.server.app:app_factory",
        factory=True,
        host=host,
        port=port,
    )
