"""SQLAlchemy models for properties and their rentable units."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.sql import func

from sync_ical.models.base import Base


class Property(Base):
    """
    ORM model for a managed rental property.

    Property records are maintained outside this service; the reconciler only
    reads them to resolve which unit a channel connection feeds into.
    """

    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    timezone = Column(String, nullable=False, server_default="UTC")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Unit(Base):
    """
    ORM model for a bookable unit within a property.

    The earliest-created unit of a property is its primary unit; channel-sourced
    reservations are attached to it.
    """

    __tablename__ = "units"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String, nullable=False, server_default="Main Unit")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
