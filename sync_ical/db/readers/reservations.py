from collections.abc import Collection
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_ical.models.enums import ACTIVE_RESERVATION_STATUSES
from sync_ical.models.properties import Property, Unit
from sync_ical.models.reservations import Reservation


def find_reservation_by_key(
    conn: Connection, channel: str, external_id: str
) -> Optional[dict[str, Any]]:
    """
    Look up a channel-sourced reservation by its deduplication key.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        channel (str): Channel type value.
        external_id (str): "<channel>-<uid>" identifier.

    Returns:
        Optional[dict[str, Any]]: Reservation row, or None if absent.
    """
    row = (
        conn.execute(
            select(Reservation)
            .where(Reservation.channel == channel)
            .where(Reservation.external_id == external_id)
        )
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def list_active_reservations(
    conn: Connection,
    unit_ids: Collection[UUID],
    start: datetime,
    end: datetime,
) -> list[dict[str, Any]]:
    """
    List confirmed and pending reservations on the given units that intersect [start, end).

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        unit_ids (Collection[UUID]): Units in scope.
        start (datetime): Window start.
        end (datetime): Window end.

    Returns:
        list[dict[str, Any]]: Reservation rows ordered by check-in.
    """
    if not unit_ids:
        return []

    result = conn.execute(
        select(Reservation)
        .where(Reservation.unit_id.in_(list(unit_ids)))
        .where(Reservation.status.in_(ACTIVE_RESERVATION_STATUSES))
        .where(Reservation.check_in < end)
        .where(Reservation.check_out > start)
        .order_by(Reservation.check_in)
    )
    return [dict(row) for row in result.mappings()]


def list_reservations(
    conn: Connection,
    property_id: Optional[UUID] = None,
    status: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    List reservations of every status with their unit and property, ordered by check-in.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        property_id (Optional[UUID]): Restrict to units of this property.
        status (Optional[str]): Restrict to one reservation status.

    Returns:
        list[dict[str, Any]]: Reservation rows plus unit_name, property_id and property_name.
    """
    stmt = (
        select(
            Reservation,
            Unit.name.label("unit_name"),
            Property.id.label("property_id"),
            Property.name.label("property_name"),
        )
        .join(Unit, Unit.id == Reservation.unit_id)
        .join(Property, Property.id == Unit.property_id)
        .order_by(Reservation.check_in, Reservation.id)
    )
    if property_id is not None:
        stmt = stmt.where(Property.id == property_id)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)

    return [dict(row) for row in conn.execute(stmt).mappings()]
