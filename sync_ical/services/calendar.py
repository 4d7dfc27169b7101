"""
Unified calendar view over reservations and availability blocks.

Callers of the conflict detector live here: the events view annotates each
entry with has_conflict, the conflicts view returns the raw pairs.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.engine import Connection, Engine

from sync_ical.db.readers.blocks import list_blocks
from sync_ical.db.readers.reservations import list_active_reservations, list_reservations
from sync_ical.db.readers.units import list_units_in_scope, unit_exists
from sync_ical.db.writers.blocks import insert_block
from sync_ical.db.writers.reservations import insert_reservation
from sync_ical.errors import InvalidWindow, ReservationOverlap, UnitNotFound
from sync_ical.metrics import conflicts_detected
from sync_ical.models.enums import ACTIVE_RESERVATION_STATUSES
from sync_ical.schemas.calendar import (
    BlockCreatePayload,
    CalendarEvent,
    ConflictPair,
    ReservationCreatePayload,
    ReservationView,
    TimedEvent,
)
from sync_ical.services.conflicts import conflicting_event_ids, detect_conflicts, to_timed_events
from sync_ical.utils.datetime import ensure_utc, utc_now

logger = structlog.get_logger(__name__)


def resolve_window(
    start: Optional[datetime],
    end: Optional[datetime],
    default_days: int,
) -> tuple[datetime, datetime]:
    """
    Fill in a query window, defaulting to [now, now + default_days).

    Raises:
        InvalidWindow: If the resulting start is not before end.
    """
    window_start = ensure_utc(start) if start else utc_now()
    window_end = ensure_utc(end) if end else window_start + timedelta(days=default_days)
    if window_start >= window_end:
        raise InvalidWindow()
    return window_start, window_end


def _load_events(
    conn: Connection,
    start: datetime,
    end: datetime,
    property_id: Optional[UUID],
    unit_id: Optional[UUID],
) -> tuple[list[TimedEvent], dict[UUID, UUID]]:
    units = list_units_in_scope(conn, property_id=property_id, unit_id=unit_id)
    reservations = list_active_reservations(conn, units.keys(), start, end)
    blocks = list_blocks(conn, units.keys(), start, end)
    return to_timed_events(reservations, blocks), units


def get_conflicts(
    engine: Engine,
    start: datetime,
    end: datetime,
    property_id: Optional[UUID] = None,
    unit_id: Optional[UUID] = None,
) -> list[ConflictPair]:
    """
    Detect conflicts between events intersecting [start, end), optionally scoped.

    Args:
        engine (Engine): SQLAlchemy engine.
        start (datetime): Window start.
        end (datetime): Window end.
        property_id (Optional[UUID]): Restrict to one property's units.
        unit_id (Optional[UUID]): Restrict to one unit.

    Returns:
        list[ConflictPair]: Overlapping pairs.
    """
    with engine.connect() as conn:
        events, _ = _load_events(conn, start, end, property_id, unit_id)

    conflicts = detect_conflicts(events)
    conflicts_detected.set(len(conflicts))

    if conflicts:
        logger.info("conflicts_detected", count=len(conflicts), events=len(events))
    return conflicts


def get_events(
    engine: Engine,
    start: datetime,
    end: datetime,
    property_id: Optional[UUID] = None,
    unit_id: Optional[UUID] = None,
) -> list[CalendarEvent]:
    """
    List reservations and blocks intersecting [start, end), flagged when in conflict.

    Returns:
        list[CalendarEvent]: Events ordered by start.
    """
    with engine.connect() as conn:
        events, units = _load_events(conn, start, end, property_id, unit_id)

    flagged = conflicting_event_ids(detect_conflicts(events))

    calendar = [
        CalendarEvent(
            **event.model_dump(),
            property_id=units[event.unit_id],
            has_conflict=event.id in flagged,
        )
        for event in events
    ]
    calendar.sort(key=lambda e: e.start)
    return calendar


def get_reservations(
    engine: Engine,
    property_id: Optional[UUID] = None,
    status: Optional[str] = None,
) -> list[ReservationView]:
    """
    List reservations of any status, optionally for one property or status, by check-in.
    """
    with engine.connect() as conn:
        rows = list_reservations(conn, property_id=property_id, status=status)

    return [
        ReservationView(
            **{
                **row,
                "check_in": ensure_utc(row["check_in"]),
                "check_out": ensure_utc(row["check_out"]),
            }
        )
        for row in rows
    ]


def create_reservation(engine: Engine, payload: ReservationCreatePayload) -> UUID:
    """
    Record a manually entered reservation.

    Raises:
        UnitNotFound: If the unit does not exist.
        ReservationOverlap: If an active reservation already occupies part of the stay.
    """
    check_in = ensure_utc(payload.check_in)
    check_out = ensure_utc(payload.check_out)

    with engine.begin() as conn:
        if not unit_exists(conn, payload.unit_id):
            raise UnitNotFound(payload.unit_id)

        if payload.status.value in ACTIVE_RESERVATION_STATUSES and list_active_reservations(
            conn, [payload.unit_id], check_in, check_out
        ):
            raise ReservationOverlap()

        reservation_id = insert_reservation(
            conn,
            unit_id=payload.unit_id,
            channel=payload.channel.value,
            guest_name=payload.guest_name,
            check_in=check_in,
            check_out=check_out,
            status=payload.status.value,
            total_amount=payload.total_amount,
        )

    logger.info("reservation_created", reservation_id=str(reservation_id))
    return reservation_id


def create_block(engine: Engine, payload: BlockCreatePayload) -> UUID:
    """
    Withhold a unit for an interval. Overlaps are allowed and show up as conflicts.

    Raises:
        UnitNotFound: If the unit does not exist.
    """
    with engine.begin() as conn:
        if not unit_exists(conn, payload.unit_id):
            raise UnitNotFound(payload.unit_id)

        block_id = insert_block(
            conn,
            unit_id=payload.unit_id,
            block_type=payload.type.value,
            start_date=ensure_utc(payload.start_date),
            end_date=ensure_utc(payload.end_date),
            notes=payload.notes,
        )

    logger.info("block_created", block_id=str(block_id), unit_id=str(payload.unit_id))
    return block_id
