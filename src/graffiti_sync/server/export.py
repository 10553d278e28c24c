"""CSV export of stored slots.

Every field, header included, is wrapped in double quotes and every double
quote inside a field is written twice. Commas and line breaks inside
graffiti are kept as they are within the quotes.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from typing import TYPE_CHECKING

from graffiti_sync.core.types import EpochFilter

if TYPE_CHECKING:
    from graffiti_sync.sync.types import SlotRecord, SlotStore

CSV_MEDIA_TYPE = "text/csv"

CSV_HEADER = (
    "Epoch",
    "Slot",
    "Graffiti",
    "Proposer",
    "Fee Recipient",
    "Exec Block Hash",
    "Exec Block Number",
)


def _row(record: SlotRecord) -> tuple[str, ...]:
    return (
        str(record.epoch),
        str(record.slot_number),
        record.graffiti,
        str(record.proposer),
        record.exec_fee_recipient,
        record.exec_block_hash,
        str(record.exec_block_number),
    )


def render_csv(records: Iterable[SlotRecord]) -> str:
    """Render records as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(_row(record) for record in records)
    return buffer.getvalue()


class CsvExporter:
    """Exports stored slots as CSV."""

    def __init__(self, store: SlotStore) -> None:
        self._store = store

    def export(self, epoch_filter: EpochFilter | None = None) -> str:
        """Render the slots matching a filter.

        Args:
            epoch_filter: Which epochs to export (default: all).

        Returns:
            CSV text; the header is present even when nothing matches.

        Raises:
            PersistenceError: If the store cannot be read.
        """
        return render_csv(self._store.query(epoch_filter or EpochFilter.all()))
