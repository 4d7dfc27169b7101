"""Overlap detection between reservations and availability blocks of the same unit."""

from collections import defaultdict
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sync_ical.models.enums import ACTIVE_RESERVATION_STATUSES
from sync_ical.schemas.calendar import ConflictPair, TimedEvent
from sync_ical.utils.datetime import ensure_utc


def to_timed_events(
    reservations: Iterable[dict[str, Any]],
    blocks: Iterable[dict[str, Any]],
) -> list[TimedEvent]:
    """
    Project reservation and block rows onto TimedEvent.

    Reservations whose status is not confirmed or pending are dropped; every
    block type is kept.

    Args:
        reservations: Reservation rows.
        blocks: Availability block rows.

    Returns:
        list[TimedEvent]: Events with aware UTC bounds.
    """
    events: list[TimedEvent] = []

    for row in reservations:
        if row["status"] not in ACTIVE_RESERVATION_STATUSES:
            continue
        events.append(
            TimedEvent(
                id=row["id"],
                unit_id=row["unit_id"],
                kind="reservation",
                start=ensure_utc(row["check_in"]),
                end=ensure_utc(row["check_out"]),
                status=row["status"],
                channel=row["channel"],
                guest_name=row["guest_name"],
                external_id=row.get("external_id"),
            )
        )

    for row in blocks:
        events.append(
            TimedEvent(
                id=row["id"],
                unit_id=row["unit_id"],
                kind="block",
                start=ensure_utc(row["start_date"]),
                end=ensure_utc(row["end_date"]),
                block_type=row["type"],
            )
        )

    return events


def detect_conflicts(events: Iterable[TimedEvent]) -> list[ConflictPair]:
    """
    Find every pair of events on the same unit whose intervals intersect.

    Intervals are half-open, so an event ending exactly when another begins
    does not conflict with it. Cancelled reservations must already be
    filtered out by the caller.

    Args:
        events: Reservations and blocks projected to TimedEvent.

    Returns:
        list[ConflictPair]: One entry per overlapping pair, with the
        intersection [max(starts), min(ends)).
    """
    by_unit: dict[UUID, list[TimedEvent]] = defaultdict(list)
    for event in events:
        by_unit[event.unit_id].append(event)

    conflicts: list[ConflictPair] = []
    for unit_id, unit_events in by_unit.items():
        unit_events.sort(key=lambda e: e.start)

        for i, a in enumerate(unit_events):
            for b in unit_events[i + 1 :]:
                # Sorted by start: nothing further right can overlap a
                if b.start >= a.end:
                    break
                if a.start < b.end and b.start < a.end:
                    conflicts.append(
                        ConflictPair(
                            unit_id=unit_id,
                            event_a=a,
                            event_b=b,
                            overlap_start=max(a.start, b.start),
                            overlap_end=min(a.end, b.end),
                        )
                    )

    return conflicts


def conflicting_event_ids(conflicts: Iterable[ConflictPair]) -> set[UUID]:
    """IDs of every event that appears in at least one conflict."""
    ids: set[UUID] = set()
    for pair in conflicts:
        ids.add(pair.event_a.id)
        ids.add(pair.event_b.id)
    return ids
