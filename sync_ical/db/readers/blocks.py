from collections.abc import Collection
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_ical.models.blocks import AvailabilityBlock


def block_exists(conn: Connection, block_id: UUID) -> bool:
    result = conn.execute(select(AvailabilityBlock.id).where(AvailabilityBlock.id == block_id))
    return result.fetchone() is not None


def list_blocks(
    conn: Connection,
    unit_ids: Collection[UUID],
    start: datetime,
    end: datetime,
) -> list[dict[str, Any]]:
    """
    List availability blocks on the given units that intersect [start, end).

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        unit_ids (Collection[UUID]): Units in scope.
        start (datetime): Window start.
        end (datetime): Window end.

    Returns:
        list[dict[str, Any]]: Block rows ordered by start date.
    """
    if not unit_ids:
        return []

    result = conn.execute(
        select(AvailabilityBlock)
        .where(AvailabilityBlock.unit_id.in_(list(unit_ids)))
        .where(AvailabilityBlock.start_date < end)
        .where(AvailabilityBlock.end_date > start)
        .order_by(AvailabilityBlock.start_date)
    )
    return [dict(row) for row in result.mappings()]
