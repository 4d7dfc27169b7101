import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.sql import func

from sync_ical.models.base import Base


class AvailabilityBlock(Base):
    """
    ORM model for an interval that withholds a unit from booking.

    Blocks are independent of reservations but share the same half-open
    [start_date, end_date) shape and take part in conflict detection alongside them.
    """

    __tablename__ = "availability_blocks"
    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_availability_blocks_dates"),
        Index("ix_availability_blocks_unit_dates", "unit_id", "start_date", "end_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    unit_id = Column(Uuid, ForeignKey("units.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(16), nullable=False, server_default="blocked")
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
