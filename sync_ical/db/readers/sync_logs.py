from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_ical.models.sync_logs import SyncLog


def list_sync_logs(conn: Connection, connection_id: UUID, limit: int = 20) -> list[dict[str, Any]]:
    """
    Fetch the most recent sync log entries of a connection, newest first.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        connection_id (UUID): Channel connection ID.
        limit (int): Maximum number of rows.

    Returns:
        list[dict[str, Any]]: Sync log rows.
    """
    result = conn.execute(
        select(SyncLog)
        .where(SyncLog.connection_id == connection_id)
        .order_by(SyncLog.started_at.desc())
        .limit(limit)
    )
    return [dict(row) for row in result.mappings()]
