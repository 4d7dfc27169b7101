from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_ical.models.connections import ChannelConnection
from sync_ical.models.properties import Property

_CONNECTION_COLUMNS = (
    ChannelConnection.id,
    ChannelConnection.property_id,
    ChannelConnection.channel,
    ChannelConnection.ical_url,
    ChannelConnection.external_listing_id,
    ChannelConnection.capabilities,
    ChannelConnection.last_sync_at,
    ChannelConnection.last_sync_error,
    Property.name.label("property_name"),
)


def get_connection(conn: Connection, connection_id: UUID) -> Optional[dict[str, Any]]:
    """
    Fetch a channel connection together with its property's name.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        connection_id (UUID): Channel connection ID.

    Returns:
        Optional[dict[str, Any]]: Connection row as a dict, or None if not found.
    """
    row = (
        conn.execute(
            select(*_CONNECTION_COLUMNS)
            .join(Property, Property.id == ChannelConnection.property_id)
            .where(ChannelConnection.id == connection_id)
        )
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def list_syncable_connections(conn: Connection) -> list[dict[str, Any]]:
    """
    List every channel connection that has a feed URL, across all properties.

    Args:
        conn (Connection): An active SQLAlchemy database connection.

    Returns:
        list[dict[str, Any]]: Connection rows in creation order.
    """
    result = conn.execute(
        select(*_CONNECTION_COLUMNS)
        .join(Property, Property.id == ChannelConnection.property_id)
        .where(ChannelConnection.ical_url.isnot(None))
        .order_by(ChannelConnection.created_at, ChannelConnection.id)
    )
    return [dict(row) for row in result.mappings()]


def channel_connected(conn: Connection, property_id: UUID, channel: str) -> bool:
    """
    Check whether a property already has a connection for the given channel.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        property_id (UUID): Property ID.
        channel (str): Channel type value.

    Returns:
        bool: True if a connection exists.
    """
    result = conn.execute(
        select(ChannelConnection.id)
        .where(ChannelConnection.property_id == property_id)
        .where(ChannelConnection.channel == channel)
    )
    return result.fetchone() is not None
