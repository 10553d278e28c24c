"""Sync module for incremental epoch ingestion.

This module provides:
- SyncEngine: Walks epochs from the stored cursor to the finalized boundary
- SingleFlight: Serializes sync triggers
- transform_epoch: Explorer entries to slot records
- Shared types and exceptions
"""

from graffiti_sync.sync.engine import PhaseCallback, SyncEngine
from graffiti_sync.sync.guard import SingleFlight, SyncInProgressError
from graffiti_sync.sync.transform import to_slot_record, transform_epoch
from graffiti_sync.sync.types import (
    EpochSource,
    PersistenceError,
    SlotRecord,
    SlotStore,
    SyncAbortedError,
    SyncError,
    SyncResult,
)

__all__ = [
    # Engine
    "PhaseCallback",
    "SyncEngine",
    # Guard
    "SingleFlight",
    "SyncInProgressError",
    # Transform
    "to_slot_record",
    "transform_epoch",
    # Types
    "EpochSource",
    "PersistenceError",
    "SlotRecord",
    "SlotStore",
    "SyncAbortedError",
    "SyncError",
    "SyncResult",
]
