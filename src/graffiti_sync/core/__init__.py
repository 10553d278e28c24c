"""Core module - Shared configuration and epoch types."""

from graffiti_sync.core.config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_REQUEST_INTERVAL,
    RemoteConfig,
    SyncConfig,
)
from graffiti_sync.core.types import (
    FINALIZED,
    EpochFilter,
    EpochRef,
    FilterMode,
    LatestFinalized,
    NumberedEpoch,
    ResumePolicy,
    SyncPhase,
)

__all__ = [
    # Config
    "DEFAULT_API_BASE_URL",
    "DEFAULT_REQUEST_INTERVAL",
    "RemoteConfig",
    "SyncConfig",
    # Types
    "FINALIZED",
    "EpochFilter",
    "EpochRef",
    "FilterMode",
    "LatestFinalized",
    "NumberedEpoch",
    "ResumePolicy",
    "SyncPhase",
]
