"""Shared configuration classes for graffiti_sync.

This module defines the configuration handed to the remote client and the
sync engine. Values are passed in explicitly; nothing here reads the
environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from graffiti_sync.core.types import ResumePolicy

DEFAULT_API_BASE_URL = "https://beaconcha.in/api/v1/epoch"
DEFAULT_REQUEST_INTERVAL = 1.0  # seconds between epoch fetches


@dataclass
class RemoteConfig:
    """Configuration for connecting to the beacon-chain explorer API.

    Attributes:
        api_base_url: Base URL of the epoch endpoints
            (e.g., "https://beaconcha.in/api/v1/epoch").
        api_key: API key sent as the ``apikey`` query parameter.
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    api_key: str = ""
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize base URL."""
        self.api_base_url = self.api_base_url.rstrip("/")


@dataclass
class SyncConfig:
    """Tuning knobs for a sync run.

    Attributes:
        request_interval: Pause between two epoch fetches, in seconds.
        resume_policy: Whether the last stored epoch is fetched again.
    """

    request_interval: float = DEFAULT_REQUEST_INTERVAL
    resume_policy: ResumePolicy = field(default=ResumePolicy.INCLUSIVE)

    def __post_init__(self) -> None:
        if self.request_interval < 0:
            raise ValueError("request_interval must be >= 0")
