"""Per-connection reconciliation of a channel iCal feed into local reservations."""

from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sync_ical.db.readers.reservations import find_reservation_by_key
from sync_ical.db.readers.units import get_primary_unit_id
from sync_ical.db.writers.connections import record_sync_failure, record_sync_success
from sync_ical.db.writers.reservations import insert_reservation, update_reservation_from_feed
from sync_ical.db.writers.sync_logs import append_sync_log
from sync_ical.errors import (
    MissingCapability,
    NoFeedConfigured,
    NoUnitForProperty,
    ParseError,
    PersistenceError,
    SyncError,
)
from sync_ical.metrics import reservations_synced, sync_runs
from sync_ical.models.enums import SyncStatus
from sync_ical.normalizers.ical import CanonicalEvent
from sync_ical.pollers.feeds import poll_feed
from sync_ical.schemas.sync import RunResult
from sync_ical.utils.datetime import ensure_utc, utc_now

logger = structlog.get_logger(__name__)

DEFAULT_GUEST_NAME = "Guest"

CREATED = "created"
UPDATED = "updated"
UNCHANGED = "unchanged"


def external_id_for(channel: str, uid: str) -> str:
    """Build the cross-run deduplication id of a feed event."""
    return f"{channel}-{uid}"


def can_read_calendar(connection: dict[str, Any]) -> bool:
    """
    Whether the connection may be read from.

    Connections without stored capabilities are readable whenever they have a feed URL.
    """
    capabilities = connection.get("capabilities")
    if not capabilities:
        return bool(connection.get("ical_url"))
    return bool(capabilities.get("calendar_read", bool(connection.get("ical_url"))))


def _unique_by_uid(events: list[CanonicalEvent]) -> list[CanonicalEvent]:
    # Later occurrences of a UID replace earlier ones
    by_uid: dict[str, CanonicalEvent] = {}
    for event in events:
        by_uid[event.uid] = event
    return list(by_uid.values())


def _reconcile_event(
    engine: Engine,
    channel: str,
    unit_id: UUID,
    event: CanonicalEvent,
    dry_run: bool,
) -> str:
    """
    Create or update the reservation for one feed event in a single transaction.

    Returns:
        str: CREATED, UPDATED or UNCHANGED

    Raises:
        PersistenceError: If the lookup or write fails.
    """
    external_id = external_id_for(channel, event.uid)
    guest_name = event.title or DEFAULT_GUEST_NAME

    try:
        with engine.connect() if dry_run else engine.begin() as conn:
            existing = find_reservation_by_key(conn, channel, external_id)

            if existing is None:
                if not dry_run:
                    insert_reservation(
                        conn,
                        unit_id=unit_id,
                        channel=channel,
                        guest_name=guest_name,
                        check_in=event.start,
                        check_out=event.end,
                        external_id=external_id,
                    )
                return CREATED

            unchanged = (
                ensure_utc(existing["check_in"]) == event.start
                and ensure_utc(existing["check_out"]) == event.end
                and existing["guest_name"] == guest_name
            )
            if unchanged:
                return UNCHANGED

            if not dry_run:
                update_reservation_from_feed(
                    conn,
                    existing["id"],
                    check_in=event.start,
                    check_out=event.end,
                    guest_name=guest_name,
                )
            return UPDATED
    except SQLAlchemyError as err:
        raise PersistenceError(f"Failed to save reservation {external_id}: {err}") from err


def _record_outcome(
    engine: Engine,
    connection_id: UUID,
    started_at: Any,
    result: RunResult,
) -> Optional[str]:
    """
    Append the sync log row and update the connection's sync bookkeeping.

    Returns:
        Optional[str]: Failure message when the bookkeeping could not be written.
    """
    status = SyncStatus.SUCCESS if result.success else SyncStatus.FAILED
    try:
        with engine.begin() as conn:
            append_sync_log(
                conn,
                connection_id,
                status=status.value,
                started_at=started_at,
                events_found=result.found,
                events_created=result.created,
                events_updated=result.updated,
                error=result.error,
            )
            if result.success:
                record_sync_success(conn, connection_id, synced_at=utc_now())
            else:
                record_sync_failure(conn, connection_id, error=result.error or "")
    except SQLAlchemyError as err:
        logger.exception(
            "sync_outcome_not_recorded", connection_id=str(connection_id), error=str(err)
        )
        return f"Failed to record sync outcome: {err}"
    return None


def reconcile(
    engine: Engine,
    connection: dict[str, Any],
    unit_id: Optional[UUID],
    dry_run: bool = False,
) -> RunResult:
    """
    Merge a connection's feed into the reservations of a unit.

    Never raises for sync failures: configuration, network, parse and
    persistence errors all come back as a failed RunResult, and are recorded
    in the sync log and on the connection. last_sync_at only advances on success.

    Args:
        engine (Engine): SQLAlchemy engine.
        connection (dict): Channel connection row (id, channel, ical_url, capabilities).
        unit_id (Optional[UUID]): Unit receiving new reservations.
        dry_run (bool): If True, compute counts without writing anything.

    Returns:
        RunResult: Counts and error of the run.
    """
    connection_id = connection["id"]
    channel = connection["channel"]
    log = logger.bind(connection_id=str(connection_id), channel=channel)
    started_at = utc_now()

    found = created = updated = skipped = 0
    error: Optional[str] = None

    log.info("sync_started", dry_run=dry_run)

    try:
        if not connection.get("ical_url"):
            raise NoFeedConfigured()
        if not can_read_calendar(connection):
            raise MissingCapability()
        if unit_id is None:
            raise NoUnitForProperty()

        try:
            events = _unique_by_uid(poll_feed(connection["ical_url"], channel))
        except ValueError as err:
            # icalendar errors derive from ValueError
            raise ParseError(f"Failed to parse iCal: {err}") from err
        found = len(events)

        for event in events:
            if not event.start < event.end:
                skipped += 1
                log.warning(
                    "feed_event_skipped",
                    uid=event.uid,
                    start=event.start.isoformat(),
                    end=event.end.isoformat(),
                )
                continue

            action = _reconcile_event(engine, channel, unit_id, event, dry_run)
            if action == CREATED:
                created += 1
            elif action == UPDATED:
                updated += 1
    except SyncError as err:
        error = err.message
        log.error(
            "sync_failed",
            error=error,
            error_type=type(err).__name__,
            created=created,
            updated=updated,
        )

    result = RunResult(
        success=error is None,
        found=found,
        created=created,
        updated=updated,
        skipped=skipped,
        error=error,
    )

    if dry_run:
        sync_runs.labels(channel=channel, status="success" if result.success else "failure").inc()
        log.info("dry_run_sync_completed", **result.model_dump())
        return result

    if created:
        reservations_synced.labels(channel=channel, action=CREATED).inc(created)
    if updated:
        reservations_synced.labels(channel=channel, action=UPDATED).inc(updated)

    record_error = _record_outcome(engine, connection_id, started_at, result)
    if record_error is not None:
        # Counts stay as written
        result = result.model_copy(
            update={
                "success": False,
                "error": record_error if result.error is None else f"{result.error}; {record_error}",
            }
        )

    sync_runs.labels(channel=channel, status="success" if result.success else "failure").inc()
    if result.success:
        log.info("sync_completed", found=found, created=created, updated=updated, skipped=skipped)
    return result


def sync_connection(
    engine: Engine,
    connection: dict[str, Any],
    dry_run: bool = False,
) -> RunResult:
    """
    Reconcile a connection into its property's primary unit.

    Args:
        engine (Engine): SQLAlchemy engine.
        connection (dict): Channel connection row including property_id.
        dry_run (bool): If True, do not write to DB.

    Returns:
        RunResult: Outcome of the run.
    """
    try:
        with engine.connect() as conn:
            unit_id = get_primary_unit_id(conn, connection["property_id"])
    except SQLAlchemyError as err:
        logger.exception(
            "primary_unit_lookup_failed", connection_id=str(connection["id"]), error=str(err)
        )
        result = RunResult(success=False, error=f"Failed to resolve unit: {err}")
        sync_runs.labels(channel=connection["channel"], status="failure").inc()
        return result

    return reconcile(engine, connection, unit_id, dry_run=dry_run)
