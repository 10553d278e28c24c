"""Sync API routes.

Runs the epoch sync on demand and reports on the last run.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from graffiti_sync.client.api import RemoteError
from graffiti_sync.server.api.deps import get_db, get_guard
from graffiti_sync.server.database import Database
from graffiti_sync.server.schemas import (
    SyncResponse,
    SyncStatusResponse,
    sync_result_to_response,
)
from graffiti_sync.sync.guard import SingleFlight, SyncInProgressError
from graffiti_sync.sync.types import PersistenceError, SyncAbortedError

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("", response_model=SyncResponse)
def run_sync(guard: SingleFlight = Depends(get_guard)) -> SyncResponse:
    """Sync every epoch from the last stored one up to the finalized epoch.

    Returns the records fetched during this run. Write failures do not stop
    the run; they are listed in ``errors``.
    """
    try:
        result = guard.run()
    except SyncInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except SyncAbortedError as e:
        if isinstance(e.__cause__, RemoteError):
            code = status.HTTP_502_BAD_GATEWAY
        else:
            code = status.HTTP_500_INTERNAL_SERVER_ERROR
        raise HTTPException(status_code=code, detail=str(e)) from e

    return sync_result_to_response(result)


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(
    guard: SingleFlight = Depends(get_guard),
    db: Database = Depends(get_db),
) -> SyncStatusResponse:
    """Summarize the store and the last sync run."""
    try:
        stored = db.count_slots()
        latest = db.latest_synced_epoch()
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e

    last = guard.last_result
    return SyncStatusResponse(
        in_flight=guard.in_flight,
        phase=guard.engine.phase.value,
        stored_slots=stored,
        latest_synced_epoch=latest,
        last_run_epochs=list(last.epochs) if last else [],
        last_run_records=len(last.records) if last else 0,
        last_run_errors=list(last.errors) if last else [],
    )
