"""Normalization of explorer slot entries into slot records."""

from __future__ import annotations

from collections.abc import Iterable

from graffiti_sync.client.api import RawSlot
from graffiti_sync.sync.types import SlotRecord


def to_slot_record(raw: RawSlot) -> SlotRecord:
    """Map one explorer entry onto the stored record shape."""
    return SlotRecord(
        epoch=raw.epoch,
        slot_number=raw.slot,
        graffiti=raw.graffiti_text,
        proposer=raw.proposer,
        exec_fee_recipient=raw.exec_fee_recipient,
        exec_block_hash=raw.exec_block_hash,
        exec_block_number=raw.exec_block_number,
    )


def transform_epoch(raw_slots: Iterable[RawSlot]) -> list[SlotRecord]:
    """Keep the slots that carry graffiti, in their original order.

    Args:
        raw_slots: Entries of one epoch as returned by the explorer.

    Returns:
        One SlotRecord per entry with non-empty graffiti text.
    """
    return [to_slot_record(raw) for raw in raw_slots if raw.graffiti_text]
