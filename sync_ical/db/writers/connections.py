import json
import uuid
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from sync_ical.config import DEBUG
from sync_ical.models.connections import ChannelConnection
from sync_ical.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_connection(conn: Connection, data: dict[str, Any]) -> UUID:
    """
    Insert a channel connection.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        data (dict): Column values (property_id, channel, ical_url, ...).

    Returns:
        UUID: ID of the new connection.
    """
    if DEBUG:
        logger.debug("Connection to insert:\n%s", json.dumps(data, default=str, indent=2))

    connection_id = data.get("id") or uuid.uuid4()
    conn.execute(insert(ChannelConnection).values(**{**data, "id": connection_id}))
    return connection_id


def delete_connection(conn: Connection, connection_id: UUID) -> bool:
    """
    Permanently delete a channel connection. Reservations it created are kept.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        connection_id (UUID): Channel connection ID.

    Returns:
        bool: True if a row was deleted.
    """
    result = conn.execute(delete(ChannelConnection).where(ChannelConnection.id == connection_id))
    return bool(result.rowcount)


def record_sync_success(conn: Connection, connection_id: UUID, synced_at: datetime) -> None:
    """
    Advance last_sync_at and clear last_sync_error after a successful run.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        connection_id (UUID): Channel connection ID.
        synced_at (datetime): Completion time of the run.
    """
    stmt = (
        update(ChannelConnection)
        .where(ChannelConnection.id == connection_id)
        .values(last_sync_at=synced_at, last_sync_error=None, updated_at=utc_now())
    )
    conn.execute(stmt)


def record_sync_failure(conn: Connection, connection_id: UUID, error: str) -> None:
    """
    Store the failure reason of a run. last_sync_at is left untouched.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        connection_id (UUID): Channel connection ID.
        error (str): Failure reason.
    """
    stmt = (
        update(ChannelConnection)
        .where(ChannelConnection.id == connection_id)
        .values(last_sync_error=error, updated_at=utc_now())
    )
    conn.execute(stmt)
