"""Scheduler for periodic sync runs.

This module provides:
- run_guarded_sync: One guarded run that logs instead of raising
- SyncScheduler: Triggers a sync every N minutes in the background
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from graffiti_sync.sync.guard import SyncInProgressError
from graffiti_sync.sync.types import SyncAbortedError

if TYPE_CHECKING:
    from graffiti_sync.sync.guard import SingleFlight
    from graffiti_sync.sync.types import SyncResult

logger = logging.getLogger(__name__)


def run_guarded_sync(guard: SingleFlight) -> SyncResult | None:
    """Run one sync through the guard, logging failures.

    Args:
        guard: Single-flight guard of the engine.

    Returns:
        The run's result, or None if the run was skipped or aborted.
    """
    try:
        result = guard.run()
    except SyncInProgressError:
        logger.info("Scheduled sync skipped: a run is already in progress")
        return None
    except SyncAbortedError as e:
        logger.error("Scheduled sync aborted: %s", e)
        return None

    if result.errors:
        logger.warning(
            "Scheduled sync finished with %d write errors (%d records)",
            len(result.errors),
            len(result.records),
        )
    else:
        logger.info("Scheduled sync finished: %d records", len(result.records))
    return result


class SyncScheduler:
    """Background scheduler triggering a sync at a fixed interval."""

    def __init__(self, guard: SingleFlight, interval_minutes: float = 10) -> None:
        """Initialize the scheduler.

        Args:
            guard: Single-flight guard of the engine.
            interval_minutes: Minutes between two runs.
        """
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be > 0")
        self._guard = guard
        self._interval_minutes = interval_minutes
        self._scheduler: BackgroundScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def _sync_job(self) -> None:
        """Job function for scheduled sync."""
        logger.info("Starting scheduled sync")
        try:
            run_guarded_sync(self._guard)
        except Exception:
            logger.exception("Error during scheduled sync")

    def start(self) -> None:
        """Start the scheduler."""
        if self._scheduler is not None:
            return  # Already running

        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self._sync_job,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id="epoch_sync",
            name="Periodic epoch sync",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Sync scheduler started (every %s minutes)", self._interval_minutes)

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Sync scheduler stopped")

    def run_now(self) -> SyncResult | None:
        """Run a sync immediately (manual trigger)."""
        return run_guarded_sync(self._guard)
