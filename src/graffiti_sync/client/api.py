"""HTTP client for the beacon-chain explorer API.

This module provides:
- EpochClient: HTTP client reading epoch slot listings and the finalized epoch
- RawSlot: Slot entry as returned by the explorer
- RemoteError, RemoteUnavailable, MalformedResponse: Exception classes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from graffiti_sync.core.config import RemoteConfig
from graffiti_sync.core.types import EpochRef, LatestFinalized

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """Base exception for explorer API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteUnavailable(RemoteError):
    """Transport failure or error status from the explorer."""


class MalformedResponse(RemoteError):
    """Explorer answered, but not with the expected shape."""


@dataclass
class RawSlot:
    """Slot entry from the explorer's epoch slot listing."""

    epoch: int
    slot: int
    graffiti_text: str
    proposer: int
    exec_fee_recipient: str = ""
    exec_block_hash: str = ""
    exec_block_number: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawSlot:
        """Create from API response dictionary.

        Missing or null execution fields are normalized to empty values.

        Raises:
            MalformedResponse: If a required field is missing or not numeric.
        """
        try:
            return cls(
                epoch=int(data["epoch"]),
                slot=int(data["slot"]),
                graffiti_text=data.get("graffiti_text") or "",
                proposer=int(data["proposer"]),
                exec_fee_recipient=data.get("exec_fee_recipient") or "",
                exec_block_hash=data.get("exec_block_hash") or "",
                exec_block_number=int(data.get("exec_block_number") or 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid slot entry: {e!r}") from e


class EpochClient:
    """HTTP client for the explorer's epoch endpoints.

    One client holds one connection pool; reuse it across a sync run and
    close it afterwards (or use it as a context manager).
    """

    def __init__(
        self,
        config: RemoteConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the epoch client.

        Args:
            config: Explorer connection settings.
            transport: Optional httpx transport (tests).
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.api_base_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            params={"apikey": config.api_key},
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> EpochClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _get_payload(self, path: str) -> Any:
        """GET a path and unwrap the ``{"data": ...}`` envelope.

        Raises:
            RemoteUnavailable: On transport error or error status.
            MalformedResponse: If the body is not a JSON envelope.
        """
        try:
            response = self._client.get(path)
        except httpx.RequestError as e:
            raise RemoteUnavailable(f"GET {path} failed: {e}") from e

        if response.status_code >= 400:
            raise RemoteUnavailable(
                f"GET {path} returned HTTP {response.status_code}",
                response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponse(f"GET {path} returned invalid JSON") from e

        if not isinstance(body, dict) or "data" not in body:
            raise MalformedResponse(f"GET {path} returned no 'data' envelope")
        return body["data"]

    # === Epoch operations ===

    def fetch_epoch(self, ref: EpochRef) -> list[RawSlot]:
        """Fetch the slot listing of one epoch.

        Args:
            ref: Concrete epoch number or the latest finalized epoch.

        Returns:
            Slot entries in the order the explorer returned them. An empty
            list means the epoch has no slots to report, not an error.

        Raises:
            RemoteUnavailable: If the explorer cannot be reached.
            MalformedResponse: If the payload is not a list of slot entries.
        """
        path = f"/{ref.path_segment}/slots"
        payload = self._get_payload(path)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise MalformedResponse(f"GET {path} did not return a slot list")

        slots = [RawSlot.from_dict(entry) for entry in payload]
        logger.debug(
            "Fetched %d slots for epoch %s",
            len(slots),
            "finalized" if isinstance(ref, LatestFinalized) else ref.number,
        )
        return slots

    def fetch_finalized_epoch(self) -> int:
        """Get the epoch number the explorer currently considers finalized.

        Raises:
            RemoteUnavailable: If the explorer cannot be reached.
            MalformedResponse: If the payload has no integer ``epoch`` field.
        """
        payload = self._get_payload(f"/{LatestFinalized().path_segment}")
        epoch = payload.get("epoch") if isinstance(payload, dict) else None
        if isinstance(epoch, bool) or not isinstance(epoch, int):
            raise MalformedResponse("Finalized epoch lookup returned no 'epoch' field")
        return epoch
