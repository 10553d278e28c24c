"""Shared types for graffiti_sync.

This module defines the epoch identifiers and filters used by the remote
client, the sync engine and the slot store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

FINALIZED = "finalized"


@dataclass(frozen=True)
class NumberedEpoch:
    """A concrete epoch number."""

    number: int

    def __post_init__(self) -> None:
        if self.number < 0:
            raise ValueError(f"Epoch number must be >= 0, got {self.number}")

    @property
    def path_segment(self) -> str:
        return str(self.number)


@dataclass(frozen=True)
class LatestFinalized:
    """Whatever epoch the remote currently considers finalized."""

    @property
    def path_segment(self) -> str:
        return FINALIZED


EpochRef = NumberedEpoch | LatestFinalized


class ResumePolicy(str, Enum):
    """Where a sync run resumes relative to the last stored epoch."""

    INCLUSIVE = "inclusive"  # fetch the last stored epoch again
    EXCLUSIVE = "exclusive"  # start one past it


class SyncPhase(str, Enum):
    """Phase of a sync run.

    Used by the engine to report progress and by the status endpoint.
    """

    IDLE = "idle"
    RESOLVING_CURSOR = "resolving_cursor"
    RESOLVING_BOUNDARY = "resolving_boundary"
    WALKING = "walking"
    WAITING = "waiting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ABORTED = "aborted"


class FilterMode(str, Enum):
    """How an EpochFilter matches stored epochs."""

    ALL = "all"
    EXACT = "exact"
    ONWARDS = "onwards"


@dataclass(frozen=True)
class EpochFilter:
    """Selection of stored slots by epoch.

    Build with ``EpochFilter.all()``, ``EpochFilter.exact(n)`` or
    ``EpochFilter.onwards(n)`` rather than the constructor.
    """

    mode: FilterMode = FilterMode.ALL
    epoch: int | None = None

    def __post_init__(self) -> None:
        if self.mode is FilterMode.ALL:
            if self.epoch is not None:
                raise ValueError("An 'all' filter takes no epoch")
        elif self.epoch is None:
            raise ValueError(f"A '{self.mode.value}' filter needs an epoch")

    @classmethod
    def all(cls) -> EpochFilter:
        return cls()

    @classmethod
    def exact(cls, epoch: int) -> EpochFilter:
        return cls(FilterMode.EXACT, epoch)

    @classmethod
    def onwards(cls, epoch: int) -> EpochFilter:
        return cls(FilterMode.ONWARDS, epoch)

    @classmethod
    def for_epoch(cls, epoch: int | None, onwards: bool = False) -> EpochFilter:
        """Build a filter from optional request parameters."""
        if epoch is None:
            return cls.all()
        return cls.onwards(epoch) if onwards else cls.exact(epoch)
