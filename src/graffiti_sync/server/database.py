"""Slot store using SQLAlchemy.

This module provides:
- Slot record persistence (append-only)
- Last synced epoch lookup for the sync cursor
- Epoch-filtered queries for CSV export

Any SQLAlchemy URL works; SQLite is the default and gets WAL mode.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from graffiti_sync.core.types import EpochFilter, FilterMode
from graffiti_sync.server.models import Base, Slot
from graffiti_sync.sync.types import PersistenceError, SlotRecord

if TYPE_CHECKING:
    from sqlalchemy import Engine, Select

DEFAULT_DB_URL = "sqlite:///graffiti.db"


def _engine_kwargs(url: str) -> dict[str, Any]:
    """Extra create_engine arguments for SQLite URLs."""
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return {}

    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        # One shared connection, otherwise every session sees an empty database
        kwargs["poolclass"] = StaticPool
    else:
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return kwargs


def _to_record(slot: Slot) -> SlotRecord:
    return SlotRecord(
        epoch=slot.epoch,
        slot_number=slot.slot_number,
        graffiti=slot.graffiti,
        proposer=slot.proposer,
        exec_fee_recipient=slot.exec_fee_recipient,
        exec_block_hash=slot.exec_block_hash,
        exec_block_number=slot.exec_block_number,
    )


class Database:
    """SQLAlchemy slot store.

    Writes are append-only; nothing here updates or deletes slots.
    """

    def __init__(self, url: str = DEFAULT_DB_URL) -> None:
        """Initialize the database.

        Args:
            url: SQLAlchemy connection string
                (e.g., "sqlite:///graffiti.db", "postgresql://...").

        Raises:
            PersistenceError: If the database cannot be opened.
        """
        self._url = url
        try:
            self._engine: Engine = create_engine(url, echo=False, **_engine_kwargs(url))

            if self._engine.dialect.name == "sqlite":
                with self._engine.connect() as conn:
                    conn.exec_driver_sql("PRAGMA journal_mode=WAL")

            # Create tables if they don't exist
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not open database: {e}") from e

    @property
    def location(self) -> str:
        """Connection URL with any password masked."""
        return make_url(self._url).render_as_string(hide_password=True)

    def close(self) -> None:
        """Close the database connection."""
        self._engine.dispose()

    def _session(self) -> Session:
        """Create a new database session."""
        return Session(self._engine)

    # === Slot operations ===

    def insert_many(self, records: Iterable[SlotRecord]) -> int:
        """Append slot records in one transaction.

        Args:
            records: Records to store.

        Returns:
            Number of rows written.

        Raises:
            PersistenceError: If the write fails; nothing is written then.
        """
        rows = [Slot(**record.to_dict()) for record in records]
        if not rows:
            return 0
        try:
            with self._session() as session:
                session.add_all(rows)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not store {len(rows)} slots: {e}") from e
        return len(rows)

    def latest_synced_epoch(self) -> int | None:
        """Get the highest stored epoch.

        Returns:
            Highest epoch, or None if no slot is stored.

        Raises:
            PersistenceError: If the read fails.
        """
        try:
            with self._session() as session:
                return session.execute(select(func.max(Slot.epoch))).scalar()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read latest epoch: {e}") from e

    def query(self, epoch_filter: EpochFilter | None = None) -> list[SlotRecord]:
        """List stored slots matching an epoch filter.

        Args:
            epoch_filter: Which epochs to include (default: all).

        Returns:
            Records ordered by epoch, slot number and insertion order.

        Raises:
            PersistenceError: If the read fails.
        """
        stmt = self._filtered(select(Slot), epoch_filter or EpochFilter.all())
        stmt = stmt.order_by(Slot.epoch, Slot.slot_number, Slot.id)
        try:
            with self._session() as session:
                return [_to_record(slot) for slot in session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not query slots: {e}") from e

    def count_slots(self, epoch_filter: EpochFilter | None = None) -> int:
        """Count stored slots matching an epoch filter."""
        stmt = self._filtered(select(func.count(Slot.id)), epoch_filter or EpochFilter.all())
        try:
            with self._session() as session:
                return int(session.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not count slots: {e}") from e

    @staticmethod
    def _filtered(stmt: Select[Any], epoch_filter: EpochFilter) -> Select[Any]:
        if epoch_filter.mode is FilterMode.EXACT:
            return stmt.where(Slot.epoch == epoch_filter.epoch)
        if epoch_filter.mode is FilterMode.ONWARDS:
            return stmt.where(Slot.epoch >= epoch_filter.epoch)
        return stmt
