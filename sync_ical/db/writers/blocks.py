import uuid
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection

from sync_ical.models.blocks import AvailabilityBlock


def insert_block(
    conn: Connection,
    unit_id: UUID,
    block_type: str,
    start_date: datetime,
    end_date: datetime,
    notes: Optional[str] = None,
) -> UUID:
    """
    Insert an availability block.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        unit_id (UUID): Unit to withhold.
        block_type (str): Block type value.
        start_date (datetime): Start of the block.
        end_date (datetime): End of the block (exclusive).
        notes (Optional[str]): Free-text note.

    Returns:
        UUID: ID of the new block.
    """
    block_id = uuid.uuid4()
    conn.execute(
        insert(AvailabilityBlock).values(
            id=block_id,
            unit_id=unit_id,
            type=block_type,
            start_date=start_date,
            end_date=end_date,
            notes=notes,
        )
    )
    return block_id


def delete_block(conn: Connection, block_id: UUID) -> bool:
    result = conn.execute(delete(AvailabilityBlock).where(AvailabilityBlock.id == block_id))
    return bool(result.rowcount)
