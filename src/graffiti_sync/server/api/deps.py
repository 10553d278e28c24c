"""FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi import Request

from graffiti_sync.server.database import Database
from graffiti_sync.server.export import CsvExporter
from graffiti_sync.sync.guard import SingleFlight


def get_db(request: Request) -> Database:
    """Get database from app state."""
    db: Database = request.app.state.db
    return db


def get_guard(request: Request) -> SingleFlight:
    """Get the single-flight sync guard from app state."""
    guard: SingleFlight = request.app.state.sync_guard
    return guard


def get_exporter(request: Request) -> CsvExporter:
    """Get a CSV exporter over the app's database."""
    return CsvExporter(get_db(request))
