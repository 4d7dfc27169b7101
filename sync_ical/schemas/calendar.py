from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from sync_ical.models.enums import BlockType, ChannelType, ReservationStatus


class TimedEvent(BaseModel):
    """
    A reservation or availability block projected onto its unit and interval.

    The interval is half-open: [start, end).
    """

    id: UUID
    unit_id: UUID
    kind: Literal["reservation", "block"]
    start: datetime
    end: datetime
    status: Optional[str] = None
    channel: Optional[str] = None
    guest_name: Optional[str] = None
    block_type: Optional[str] = None
    external_id: Optional[str] = None


class CalendarEvent(TimedEvent):
    """
    Entry of the unified calendar view, flagged when it overlaps another event.
    """

    property_id: UUID
    has_conflict: bool = False


class ConflictPair(BaseModel):
    """
    Two events on the same unit whose intervals intersect.
    """

    unit_id: UUID
    event_a: TimedEvent
    event_b: TimedEvent
    overlap_start: datetime
    overlap_end: datetime


class ReservationView(BaseModel):
    """
    A reservation as listed to operators, with its unit and property.
    """

    id: UUID
    unit_id: UUID
    unit_name: str
    property_id: UUID
    property_name: str
    channel: str
    guest_name: str
    check_in: datetime
    check_out: datetime
    status: str
    external_id: Optional[str] = None
    total_amount: Optional[Decimal] = None


class ReservationCreatePayload(BaseModel):
    """
    Schema for a manually entered reservation.
    """

    unit_id: UUID
    channel: ChannelType = ChannelType.DIRECT
    guest_name: str = Field(..., min_length=1)
    check_in: datetime
    check_out: datetime
    status: ReservationStatus = ReservationStatus.CONFIRMED
    total_amount: Optional[Decimal] = None

    @model_validator(mode="after")
    def check_dates(self) -> "ReservationCreatePayload":
        if self.check_in >= self.check_out:
            raise ValueError("check_in must be before check_out")
        return self


class BlockCreatePayload(BaseModel):
    """
    Schema for withholding a unit from booking.
    """

    unit_id: UUID
    type: BlockType = BlockType.BLOCKED
    start_date: datetime
    end_date: datetime
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self) -> "BlockCreatePayload":
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self
