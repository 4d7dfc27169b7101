"""SQLAlchemy model for external channel calendar connections."""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from sync_ical.models.base import Base


class ChannelConnection(Base):
    """
    ORM model for one external calendar feed attached to a property.

    A property has at most one connection per channel. ical_url is optional;
    connections without it are never picked up by the scheduler. capabilities
    holds the declared flags (calendar_read, calendar_write, messaging_read,
    messaging_send, pricing_write, payouts_read) of which only calendar_read is
    acted on. last_sync_at only moves on a successful reconciliation, while
    last_sync_error holds the reason of the latest failure.
    """

    __tablename__ = "channel_connections"
    __table_args__ = (
        UniqueConstraint("property_id", "channel", name="uq_channel_connections_property_channel"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    channel = Column(String(32), nullable=False)
    ical_url = Column(Text, nullable=True)
    external_listing_id = Column(String, nullable=True)
    capabilities = Column(JSON, nullable=True)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
