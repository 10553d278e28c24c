"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from pydantic import BaseModel

from graffiti_sync.sync.types import SlotRecord, SyncResult

# === Slot schemas ===


class SlotResponse(BaseModel):
    """Slot record in responses."""

    epoch: int
    slot_number: int
    graffiti: str
    proposer: int
    exec_fee_recipient: str
    exec_block_hash: str
    exec_block_number: int


# === Sync schemas ===


class SyncResponse(BaseModel):
    """Response for a sync run."""

    phase: str
    start_epoch: int | None
    finalized_epoch: int | None
    epochs: list[int]
    errors: list[str]
    records: list[SlotResponse]


class SyncStatusResponse(BaseModel):
    """Summary of the last sync run."""

    in_flight: bool
    phase: str
    stored_slots: int
    latest_synced_epoch: int | None
    last_run_epochs: list[int]
    last_run_records: int
    last_run_errors: list[str]


# === Health ===


class HealthResponse(BaseModel):
    """Health check response."""

    status: str


# === Helper functions ===


def slot_to_response(record: SlotRecord) -> SlotResponse:
    """Convert SlotRecord to response schema."""
    return SlotResponse(**record.to_dict())


def sync_result_to_response(result: SyncResult) -> SyncResponse:
    """Convert SyncResult to response schema."""
    return SyncResponse(
        phase=result.phase.value,
        start_epoch=result.start_epoch,
        finalized_epoch=result.finalized_epoch,
        epochs=list(result.epochs),
        errors=list(result.errors),
        records=[slot_to_response(r) for r in result.records],
    )
