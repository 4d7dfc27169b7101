from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_ical.models.properties import Property, Unit


def property_exists(conn: Connection, property_id: UUID) -> bool:
    result = conn.execute(select(Property.id).where(Property.id == property_id))
    return result.fetchone() is not None


def unit_exists(conn: Connection, unit_id: UUID) -> bool:
    result = conn.execute(select(Unit.id).where(Unit.id == unit_id))
    return result.fetchone() is not None


def get_primary_unit_id(conn: Connection, property_id: UUID) -> Optional[UUID]:
    """
    Resolve the unit that channel-sourced reservations of a property land on.

    The primary unit is the earliest-created one, ties broken by id.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        property_id (UUID): Property ID.

    Returns:
        Optional[UUID]: Unit ID, or None when the property has no units.
    """
    result = conn.execute(
        select(Unit.id)
        .where(Unit.property_id == property_id)
        .order_by(Unit.created_at, Unit.id)
        .limit(1)
    )
    row = result.fetchone()
    return row[0] if row else None


def list_units_in_scope(
    conn: Connection,
    property_id: Optional[UUID] = None,
    unit_id: Optional[UUID] = None,
) -> dict[UUID, UUID]:
    """
    Map unit IDs to their property IDs, optionally narrowed to one property or unit.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        property_id (Optional[UUID]): Restrict to units of this property.
        unit_id (Optional[UUID]): Restrict to this unit.

    Returns:
        dict[UUID, UUID]: unit_id -> property_id
    """
    stmt = select(Unit.id, Unit.property_id)
    if property_id is not None:
        stmt = stmt.where(Unit.property_id == property_id)
    if unit_id is not None:
        stmt = stmt.where(Unit.id == unit_id)
    return {row[0]: row[1] for row in conn.execute(stmt)}
