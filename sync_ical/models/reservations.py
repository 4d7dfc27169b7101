# models/reservations.py

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from sync_ical.models.base import Base


class Reservation(Base):
    """
    ORM model for a committed booking on a unit.

    Channel-sourced reservations carry external_id = "<channel>-<uid>", which
    together with channel is the deduplication key across sync runs. Manual
    reservations leave external_id NULL. Rows are never deleted by the
    reconciler; only check_in, check_out and guest_name are ever overwritten
    from a feed, so locally advanced status and total_amount survive re-syncs.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        UniqueConstraint("channel", "external_id", name="uq_reservations_channel_external_id"),
        CheckConstraint("check_in < check_out", name="ck_reservations_dates"),
        Index("ix_reservations_unit_dates", "unit_id", "check_in", "check_out"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    unit_id = Column(Uuid, ForeignKey("units.id", ondelete="CASCADE"), nullable=False)
    channel = Column(String(32), nullable=False)
    guest_name = Column(String, nullable=False)
    check_in = Column(DateTime(timezone=True), nullable=False)
    check_out = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(16), nullable=False, server_default="confirmed")
    external_id = Column(String, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
