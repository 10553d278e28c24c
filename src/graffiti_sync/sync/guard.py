"""Single-flight guard around the sync engine.

Every trigger (HTTP route, scheduler) of one engine goes through the same
SingleFlight.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from graffiti_sync.sync.types import SyncAbortedError, SyncError

if TYPE_CHECKING:
    from graffiti_sync.sync.engine import SyncEngine
    from graffiti_sync.sync.types import SyncResult

logger = logging.getLogger(__name__)


class SyncInProgressError(SyncError):
    """Another sync run is already in flight."""


class SingleFlight:
    """Runs the engine at most once at a time; extra triggers are rejected."""

    def __init__(self, engine: SyncEngine) -> None:
        self._engine = engine
        self._lock = threading.Lock()
        self._last_result: SyncResult | None = None

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    @property
    def last_result(self) -> SyncResult | None:
        """Result of the last finished run, aborted runs included."""
        return self._last_result

    @property
    def engine(self) -> SyncEngine:
        return self._engine

    def run(self, cancel_event: threading.Event | None = None) -> SyncResult:
        """Run one sync unless one is already running.

        Raises:
            SyncInProgressError: If a run is in flight.
            SyncAbortedError: If the run aborted.
        """
        if not self._lock.acquire(blocking=False):
            logger.debug("Sync trigger rejected: a run is in flight")
            raise SyncInProgressError("A sync run is already in progress")
        try:
            result = self._engine.sync(cancel_event)
            self._last_result = result
            return result
        except SyncAbortedError as e:
            self._last_result = e.result
            raise
        finally:
            self._lock.release()
