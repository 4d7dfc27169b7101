import json
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import insert
from sqlalchemy.engine import Connection

from sync_ical.config import DEBUG
from sync_ical.db.writers._update import update_if_distinct
from sync_ical.models.enums import ReservationStatus
from sync_ical.models.reservations import Reservation

logger = structlog.get_logger(__name__)


def insert_reservation(
    conn: Connection,
    unit_id: UUID,
    channel: str,
    guest_name: str,
    check_in: datetime,
    check_out: datetime,
    external_id: Optional[str] = None,
    status: str = ReservationStatus.CONFIRMED.value,
    total_amount: Optional[Decimal] = None,
) -> UUID:
    """
    Insert a reservation row.

    Args:
        conn (Connection): SQLAlchemy DB connection (within transaction).
        unit_id (UUID): Unit the reservation occupies.
        channel (str): Channel type value.
        guest_name (str): Guest name shown on the calendar.
        check_in (datetime): Start of the stay.
        check_out (datetime): End of the stay (exclusive).
        external_id (Optional[str]): "<channel>-<uid>" for channel-sourced rows.
        status (str): Reservation status value.
        total_amount (Optional[Decimal]): Monetary total, if known.

    Returns:
        UUID: ID of the new reservation.
    """
    reservation_id = uuid.uuid4()
    row = {
        "id": reservation_id,
        "unit_id": unit_id,
        "channel": channel,
        "guest_name": guest_name,
        "check_in": check_in,
        "check_out": check_out,
        "status": status,
        "external_id": external_id,
        "total_amount": total_amount,
    }

    if DEBUG:
        logger.debug("Reservation to insert:\n%s", json.dumps(row, default=str, indent=2))

    conn.execute(insert(Reservation).values(**row))
    return reservation_id


def update_reservation_from_feed(
    conn: Connection,
    reservation_id: UUID,
    check_in: datetime,
    check_out: datetime,
    guest_name: str,
) -> bool:
    """
    Overwrite the channel-authoritative fields of a reservation.

    Status and total_amount are deliberately not part of the update.

    Args:
        conn (Connection): SQLAlchemy DB connection (within transaction).
        reservation_id (UUID): Reservation ID.
        check_in (datetime): New check-in.
        check_out (datetime): New check-out.
        guest_name (str): New guest name.

    Returns:
        bool: True if the row changed.
    """
    return update_if_distinct(
        conn,
        Reservation,
        "id",
        reservation_id,
        {"check_in": check_in, "check_out": check_out, "guest_name": guest_name},
    )
