"""CSV export API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from graffiti_sync.core.types import EpochFilter
from graffiti_sync.server.api.deps import get_exporter
from graffiti_sync.server.export import CSV_MEDIA_TYPE, CsvExporter
from graffiti_sync.sync.types import PersistenceError

router = APIRouter(prefix="/csv", tags=["csv"])


def _csv_response(exporter: CsvExporter, epoch_filter: EpochFilter) -> Response:
    try:
        body = exporter.export(epoch_filter)
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e
    return Response(content=body, media_type=CSV_MEDIA_TYPE)


@router.get("")
def export_all(exporter: CsvExporter = Depends(get_exporter)) -> Response:
    """Export every stored slot."""
    return _csv_response(exporter, EpochFilter.all())


@router.get("/{epoch}")
def export_epoch(
    epoch: int = Path(..., ge=0, description="Epoch to export."),
    onwards: bool = Query(
        default=False,
        description="Export this epoch and every later one.",
    ),
    exporter: CsvExporter = Depends(get_exporter),
) -> Response:
    """Export the slots of one epoch, or of every epoch from it on."""
    return _csv_response(exporter, EpochFilter.for_epoch(epoch, onwards))
