"""SQLAlchemy models for the graffiti slot store.

This module defines the database schema using SQLAlchemy ORM.
"""

from __future__ import annotations

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class Slot(Base):
    """Represents one slot with graffiti.

    (epoch, slot_number) is not unique: a re-fetched epoch is
    appended again.
    """

    __tablename__ = "slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    epoch: Mapped[int] = mapped_column(Integer, nullable=False)
    slot_number: Mapped[int] = mapped_column(Integer, nullable=False)
    graffiti: Mapped[str] = mapped_column(Text, nullable=False)
    proposer: Mapped[int] = mapped_column(Integer, nullable=False)
    exec_fee_recipient: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    exec_block_hash: Mapped[str] = mapped_column(String(80), default="", nullable=False)
    exec_block_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Indexes
    __table_args__ = (Index("idx_slots_epoch", "epoch"),)
