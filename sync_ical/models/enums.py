"""Enumerated values stored as plain strings in the calendar tables."""

from enum import Enum


class ChannelType(str, Enum):
    AIRBNB = "airbnb"
    VRBO = "vrbo"
    BOOKING = "booking"
    DIRECT = "direct"
    OTHER = "other"


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Only these statuses occupy the unit for conflict purposes
ACTIVE_RESERVATION_STATUSES = (ReservationStatus.CONFIRMED.value, ReservationStatus.PENDING.value)


class BlockType(str, Enum):
    BOOKED = "booked"
    BLOCKED = "blocked"
    MAINTENANCE = "maintenance"
    HOLD = "hold"


class SyncStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
