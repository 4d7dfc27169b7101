"""
Internal helper functions for connection and calendar route handlers.

Each helper raises the HTTPException the handlers would otherwise repeat.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.engine import Connection

from sync_ical.db.readers.connections import channel_connected, get_connection
from sync_ical.db.readers.units import property_exists


def get_connection_or_404(conn: Connection, connection_id: UUID) -> dict[str, Any]:
    """
    Load a channel connection, raise 404 if it does not exist.

    Raises:
        HTTPException: 404 if the connection doesn't exist
    """
    connection = get_connection(conn, connection_id)
    if connection is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Channel connection {connection_id} not found",
        )
    return connection


def validate_property_exists_or_404(conn: Connection, property_id: UUID) -> None:
    if not property_exists(conn, property_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Property {property_id} not found",
        )


def validate_channel_not_connected_or_422(conn: Connection, property_id: UUID, channel: str) -> None:
    """
    Validate that the property has no connection for this channel yet.

    Raises:
        HTTPException: 422 if the channel is already connected
    """
    if channel_connected(conn, property_id, channel):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{channel} channel is already connected to this property",
        )


def build_capabilities(ical_url: str | None) -> dict[str, bool]:
    """
    Capabilities of a new connection: calendar_read follows the presence of a feed URL.
    """
    return {
        "calendar_read": bool(ical_url),
        "calendar_write": False,
        "messaging_read": False,
        "messaging_send": False,
        "pricing_write": False,
        "payouts_read": False,
    }
