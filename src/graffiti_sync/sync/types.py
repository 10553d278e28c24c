"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, SyncAbortedError, PersistenceError: Exception classes
- SlotRecord: Canonical stored slot
- SlotStore: Storage contract consumed by the engine and exporter
- EpochSource: Remote contract consumed by the engine
- SyncResult: Overall sync run result
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from graffiti_sync.core.types import SyncPhase

if TYPE_CHECKING:
    from graffiti_sync.client.api import RawSlot
    from graffiti_sync.core.types import EpochFilter, EpochRef


class SyncError(Exception):
    """Base exception for sync errors."""


class PersistenceError(SyncError):
    """Slot store could not read or write."""


class SyncAbortedError(SyncError):
    """A sync run stopped before reaching the finalized boundary.

    The failure that ended the run is chained as ``__cause__``. ``result``
    holds what the run gathered before it stopped; batches already written
    to the store stay there.
    """

    def __init__(self, message: str, result: SyncResult) -> None:
        super().__init__(message)
        self.result = result


@dataclass(frozen=True)
class SlotRecord:
    """One slot with non-empty graffiti, as stored and exported."""

    epoch: int
    slot_number: int
    graffiti: str
    proposer: int
    exec_fee_recipient: str = ""
    exec_block_hash: str = ""
    exec_block_number: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SlotStore(Protocol):
    """Storage for slot records."""

    def insert_many(self, records: Iterable[SlotRecord]) -> int: ...

    def latest_synced_epoch(self) -> int | None: ...

    def query(self, epoch_filter: EpochFilter) -> list[SlotRecord]: ...


class EpochSource(Protocol):
    """Remote read operations used by the sync engine."""

    def fetch_epoch(self, ref: EpochRef) -> list[RawSlot]: ...

    def fetch_finalized_epoch(self) -> int: ...

    def close(self) -> None: ...


@dataclass
class SyncResult:
    """Result of a sync run.

    ``records`` holds everything fetched and transformed during the run,
    whether or not it made it to the store; ``errors`` lists the failed
    writes.
    """

    records: list[SlotRecord] = field(default_factory=list)
    epochs: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    phase: SyncPhase = SyncPhase.IDLE
    start_epoch: int | None = None
    finalized_epoch: int | None = None

    @property
    def success(self) -> bool:
        """True if the run reached the boundary and every write landed."""
        return self.phase is SyncPhase.COMPLETED and not self.errors
