"""FastAPI application for the graffiti sync service.

This module creates and configures the FastAPI application with:
- POST /sync to run the epoch sync on demand
- GET /csv and /csv/{epoch} for CSV export
- An optional interval scheduler triggering the sync in the background

Usage:
    uvicorn graffiti_sync.server.app:app_factory --factory --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from graffiti_sync.client.api import EpochClient
from graffiti_sync.core.config import DEFAULT_API_BASE_URL, RemoteConfig, SyncConfig
from graffiti_sync.server.api.router import router as api_router
from graffiti_sync.server.database import DEFAULT_DB_URL, Database
from graffiti_sync.server.scheduler import SyncScheduler
from graffiti_sync.sync.engine import SyncEngine
from graffiti_sync.sync.guard import SingleFlight
from graffiti_sync.sync.types import EpochSource

# Configuration from environment variables with defaults
API_KEY = os.environ.get("API_KEY", "")
API_BASE_URL = os.environ.get("API_BASE_URL", DEFAULT_API_BASE_URL)
DB_CONNECT_STRING = os.environ.get("DB_CONNECT_STRING", DEFAULT_DB_URL)
LOG_PATH = Path(os.environ.get("GRAFFITI_SYNC_LOG_PATH", "graffiti-sync.log"))
SYNC_INTERVAL_MINUTES = float(os.environ.get("GRAFFITI_SYNC_INTERVAL_MINUTES", "0"))

logger = logging.getLogger(__name__)


def setup_logging(log_path: Path | None) -> None:
    """Configure logging to output to stdout and, optionally, a file.

    Args:
        log_path: Path to the log file, or None for stdout only.
    """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    # Root logger for graffiti_sync
    root_logger = logging.getLogger("graffiti_sync")
    root_logger.setLevel(logging.INFO)
    if root_logger.handlers:
        return  # Already configured

    # Stdout handler
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    if log_path is None:
        return

    # File handler
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Also capture uvicorn logs to file
    for uvicorn_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(uvicorn_name)
        uvicorn_logger.addHandler(file_handler)


def create_app(
    db: Database,
    client: EpochSource,
    sync_config: SyncConfig | None = None,
    scheduler_interval_minutes: float = 0,
) -> FastAPI:
    """Create FastAPI application with explicit collaborators.

    Args:
        db: Slot store.
        client: Explorer client.
        sync_config: Run settings for the sync engine.
        scheduler_interval_minutes: Minutes between background syncs
            (0 disables the scheduler).

    Returns:
        Configured FastAPI application.
    """
    engine = SyncEngine(client, db, sync_config)
    guard = SingleFlight(engine)
    scheduler = (
        SyncScheduler(guard, scheduler_interval_minutes)
        if scheduler_interval_minutes > 0
        else None
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        # Startup
        logger.info("=" * 60)
        logger.info("Graffiti Sync Server Starting")
        logger.info("=" * 60)
        logger.info("  Database:  %s", db.location)
        if scheduler:
            logger.info("  Scheduler: every %s minutes", scheduler_interval_minutes)
            scheduler.start()
        else:
            logger.info("  Scheduler: disabled (sync on demand only)")
        logger.info("=" * 60)

        yield

        # Shutdown
        if scheduler:
            scheduler.stop()
        client.close()
        db.close()
        logger.info("Graffiti Sync Server shutting down")

    application = FastAPI(
        title="Graffiti Sync",
        description="Beacon-chain graffiti ingestion and CSV export",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.state.db = db
    application.state.sync_guard = guard
    application.state.scheduler = scheduler

    application.include_router(api_router)

    return application


def app_factory() -> FastAPI:
    """Factory function for uvicorn --factory mode."""
    setup_logging(LOG_PATH)
    return create_app(
        db=Database(DB_CONNECT_STRING),
        client=EpochClient(RemoteConfig(api_base_url=API_BASE_URL, api_key=API_KEY)),
        scheduler_interval_minutes=SYNC_INTERVAL_MINUTES,
    )
