import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.sql import func

from sync_ical.models.base import Base


class SyncLog(Base):
    """
    ORM model for the append-only record of reconciliation attempts.

    One row is written per attempt against a channel connection, successful or
    not. Rows are never updated or deleted by the service.
    """

    __tablename__ = "sync_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    connection_id = Column(
        Uuid,
        ForeignKey("channel_connections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(String(16), nullable=False)
    events_found = Column(Integer, nullable=False, server_default="0")
    events_created = Column(Integer, nullable=False, server_default="0")
    events_updated = Column(Integer, nullable=False, server_default="0")
    error = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
