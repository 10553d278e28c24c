"""Sync engine walking finalized epochs into the slot store.

This module provides:
- SyncEngine: Resolves where the last run stopped, walks epoch by epoch up
  to the finalized boundary and writes each epoch's graffiti slots
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import NoReturn

from graffiti_sync.client.api import RawSlot, RemoteError
from graffiti_sync.core.config import SyncConfig
from graffiti_sync.core.types import (
    EpochRef,
    LatestFinalized,
    NumberedEpoch,
    ResumePolicy,
    SyncPhase,
)
from graffiti_sync.sync.transform import transform_epoch
from graffiti_sync.sync.types import (
    EpochSource,
    PersistenceError,
    SlotRecord,
    SlotStore,
    SyncAbortedError,
    SyncResult,
)

logger = logging.getLogger(__name__)

PhaseCallback = Callable[[SyncPhase], None]


class SyncEngine:
    """Incremental epoch sync between the explorer and the slot store.

    A run is strictly sequential: fetch, transform, persist, advance, wait.
    The store is the only progress record, so an epoch whose write failed is
    fetched again by the next run.
    """

    def __init__(
        self,
        client: EpochSource,
        store: SlotStore,
        config: SyncConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        phase_callback: PhaseCallback | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            client: Explorer client.
            store: Slot store.
            config: Run settings (interval, resume policy).
            sleep: Function used for the pause between fetches.
            phase_callback: Optional callback on every phase change.
        """
        self._client = client
        self._store = store
        self._config = config or SyncConfig()
        self._sleep = sleep
        self._phase_callback = phase_callback
        self._phase = SyncPhase.IDLE

    @property
    def phase(self) -> SyncPhase:
        """Phase of the current (or last) run."""
        return self._phase

    def sync(self, cancel_event: threading.Event | None = None) -> SyncResult:
        """Run one sync from the stored cursor to the finalized epoch.

        Args:
            cancel_event: Optional event; once set, the walk stops before the
                next epoch and the run ends as CANCELLED.

        Returns:
            SyncResult with every record transformed during the run.

        Raises:
            SyncAbortedError: If the cursor, the boundary or an epoch could
                not be read. Epochs written before the failure stay stored.
        """
        result = SyncResult()

        self._set_phase(SyncPhase.RESOLVING_CURSOR, result)
        try:
            latest = self._store.latest_synced_epoch()
        except PersistenceError as e:
            self._abort(result, "Could not read the last synced epoch", e)
        cursor = self._resolve_cursor(latest)
        if isinstance(cursor, NumberedEpoch):
            result.start_epoch = cursor.number

        self._set_phase(SyncPhase.RESOLVING_BOUNDARY, result)
        try:
            finalized = self._client.fetch_finalized_epoch()
        except RemoteError as e:
            self._abort(result, "Could not read the finalized epoch", e)
        result.finalized_epoch = finalized

        logger.info(
            "Sync starting at epoch %s, finalized epoch is %d",
            result.start_epoch if result.start_epoch is not None else "finalized",
            finalized,
        )

        while self._within_boundary(cursor, finalized):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Sync cancelled before epoch %s", cursor.path_segment)
                self._set_phase(SyncPhase.CANCELLED, result)
                return result

            self._set_phase(SyncPhase.WALKING, result)
            try:
                raw_slots = self._client.fetch_epoch(cursor)
            except RemoteError as e:
                self._abort(result, f"Could not fetch epoch {cursor.path_segment}", e)

            epoch = self._epoch_number(cursor, raw_slots, finalized)
            if result.start_epoch is None:
                result.start_epoch = epoch

            records = transform_epoch(raw_slots)
            result.records.extend(records)
            result.epochs.append(epoch)
            self._persist(epoch, records, result)
            logger.info(
                "Epoch %d: %d slots, %d with graffiti",
                epoch,
                len(raw_slots),
                len(records),
            )

            cursor = NumberedEpoch(epoch + 1)
            if self._within_boundary(cursor, finalized):
                self._set_phase(SyncPhase.WAITING, result)
                self._wait(cancel_event)

        self._set_phase(SyncPhase.COMPLETED, result)
        logger.info(
            "Sync completed: %d epochs, %d records, %d write errors",
            len(result.epochs),
            len(result.records),
            len(result.errors),
        )
        return result

    def _resolve_cursor(self, latest: int | None) -> EpochRef:
        """Pick the first epoch of the run from the last stored epoch."""
        if latest is None:
            return LatestFinalized()
        if self._config.resume_policy is ResumePolicy.EXCLUSIVE:
            return NumberedEpoch(latest + 1)
        return NumberedEpoch(latest)

    @staticmethod
    def _within_boundary(cursor: EpochRef, finalized: int) -> bool:
        # The finalized sentinel always yields one iteration.
        if isinstance(cursor, LatestFinalized):
            return True
        return cursor.number <= finalized

    @staticmethod
    def _epoch_number(cursor: EpochRef, raw_slots: list[RawSlot], finalized: int) -> int:
        """Concrete epoch number of a fetched epoch.

        The first fetch of an empty store targets "finalized"; its number
        comes from the response, or from the boundary when the response is
        empty.
        """
        if isinstance(cursor, NumberedEpoch):
            return cursor.number
        if raw_slots:
            return raw_slots[0].epoch
        return finalized

    def _persist(self, epoch: int, records: list[SlotRecord], result: SyncResult) -> None:
        if not records:
            return
        try:
            self._store.insert_many(records)
        except PersistenceError as e:
            message = f"Epoch {epoch}: {e}"
            logger.warning("Could not store %d records of epoch %d: %s", len(records), epoch, e)
            result.errors.append(message)

    def _wait(self, cancel_event: threading.Event | None) -> None:
        interval = self._config.request_interval
        logger.debug("Waiting %.1fs before next epoch", interval)
        if cancel_event is not None:
            cancel_event.wait(interval)
        else:
            self._sleep(interval)

    def _abort(self, result: SyncResult, message: str, cause: Exception) -> NoReturn:
        self._set_phase(SyncPhase.ABORTED, result)
        logger.error("%s: %s", message, cause)
        raise SyncAbortedError(f"{message}: {cause}", result) from cause

    def _set_phase(self, phase: SyncPhase, result: SyncResult) -> None:
        self._phase = phase
        result.phase = phase
        if self._phase_callback:
            self._phase_callback(phase)
