from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.engine import Connection

from sync_ical.models.sync_logs import SyncLog
from sync_ical.utils.datetime import utc_now


def append_sync_log(
    conn: Connection,
    connection_id: UUID,
    status: str,
    started_at: datetime,
    events_found: int = 0,
    events_created: int = 0,
    events_updated: int = 0,
    error: Optional[str] = None,
) -> None:
    """
    Append one reconciliation attempt to the sync log.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        connection_id (UUID): Channel connection ID.
        status (str): "success" or "failed".
        started_at (datetime): When the attempt began.
        events_found (int): Unique events parsed from the feed.
        events_created (int): Reservations created.
        events_updated (int): Reservations updated.
        error (Optional[str]): Failure reason.
    """
    conn.execute(
        insert(SyncLog).values(
            connection_id=connection_id,
            status=status,
            events_found=events_found,
            events_created=events_created,
            events_updated=events_updated,
            error=error,
            started_at=started_at,
            completed_at=utc_now(),
        )
    )
