from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from prometheus_client import REGISTRY
from sqlalchemy.engine import Engine

from sync_ical.errors import InvalidWindow, ReservationOverlap, UnitNotFound
from sync_ical.models.enums import ReservationStatus
from sync_ical.schemas.calendar import BlockCreatePayload, ReservationCreatePayload
from sync_ical.services.calendar import (
    create_block,
    create_reservation,
    get_conflicts,
    get_events,
    resolve_window,
)

DAY0 = datetime(2027, 3, 1, tzinfo=timezone.utc)
WINDOW = (DAY0, DAY0 + timedelta(days=60))


def day(n: int) -> datetime:
    return DAY0 + timedelta(days=n)


@pytest.fixture
def unit_ids(
    make_property: Callable[..., uuid.UUID], make_unit: Callable[..., uuid.UUID]
) -> dict[str, uuid.UUID]:
    beach = make_property("Beach")
    city = make_property("City")
    return {
        "beach_property": beach,
        "beach": make_unit(beach),
        "city_property": city,
        "city": make_unit(city),
    }


@pytest.mark.integration
def test_events_are_flagged_when_they_overlap(
    db_engine: Engine,
    unit_ids: dict[str, uuid.UUID],
    make_reservation: Callable[..., uuid.UUID],
) -> None:
    a = make_reservation(unit_ids["beach"], day(1), day(3), channel="airbnb")
    b = make_reservation(unit_ids["beach"], day(2), day(4), channel="vrbo")
    c = make_reservation(unit_ids["beach"], day(4), day(6))

    events = get_events(db_engine, *WINDOW)

    flags = {e.id: e.has_conflict for e in events}
    assert flags == {a: True, b: True, c: False}
    assert all(e.property_id == unit_ids["beach_property"] for e in events)
    assert [e.start for e in events] == sorted(e.start for e in events)


@pytest.mark.integration
def test_conflicts_include_blocks_and_exclude_cancelled(
    db_engine: Engine,
    unit_ids: dict[str, uuid.UUID],
    make_reservation: Callable[..., uuid.UUID],
) -> None:
    confirmed = make_reservation(unit_ids["city"], day(10), day(15))
    make_reservation(unit_ids["city"], day(11), day(13), status="cancelled")
    block_id = create_block(
        db_engine,
        BlockCreatePayload(
            unit_id=unit_ids["city"], type="maintenance", start_date=day(14), end_date=day(16)
        ),
    )

    conflicts = get_conflicts(db_engine, *WINDOW)

    assert len(conflicts) == 1
    pair = conflicts[0]
    assert {pair.event_a.id, pair.event_b.id} == {confirmed, block_id}
    assert pair.overlap_start == day(14)
    assert pair.overlap_end == day(15)
    assert REGISTRY.get_sample_value("ical_conflicts_detected") == 1.0


@pytest.mark.integration
def test_conflicts_scope_by_property_and_unit(
    db_engine: Engine,
    unit_ids: dict[str, uuid.UUID],
    make_reservation: Callable[..., uuid.UUID],
) -> None:
    for unit in ("beach", "city"):
        make_reservation(unit_ids[unit], day(1), day(3))
        make_reservation(unit_ids[unit], day(2), day(4))

    assert len(get_conflicts(db_engine, *WINDOW)) == 2
    assert len(get_conflicts(db_engine, *WINDOW, property_id=unit_ids["beach_property"])) == 1
    (pair,) = get_conflicts(db_engine, *WINDOW, unit_id=unit_ids["city"])
    assert pair.unit_id == unit_ids["city"]


@pytest.mark.integration
def test_window_excludes_events_outside_it(
    db_engine: Engine,
    unit_ids: dict[str, uuid.UUID],
    make_reservation: Callable[..., uuid.UUID],
) -> None:
    make_reservation(unit_ids["beach"], day(-10), day(-5))
    inside = make_reservation(unit_ids["beach"], day(-1), day(1))

    events = get_events(db_engine, *WINDOW)

    assert [e.id for e in events] == [inside]


@pytest.mark.integration
def test_manual_reservation_rejected_when_overlapping_active_one(
    db_engine: Engine,
    unit_ids: dict[str, uuid.UUID],
    make_reservation: Callable[..., uuid.UUID],
) -> None:
    make_reservation(unit_ids["beach"], day(5), day(8))

    with pytest.raises(ReservationOverlap):
        create_reservation(
            db_engine,
            ReservationCreatePayload(
                unit_id=unit_ids["beach"], guest_name="Late", check_in=day(7), check_out=day(9)
            ),
        )

    # Back-to-back is fine
    reservation_id = create_reservation(
        db_engine,
        ReservationCreatePayload(
            unit_id=unit_ids["beach"], guest_name="Next", check_in=day(8), check_out=day(9)
        ),
    )
    assert isinstance(reservation_id, uuid.UUID)


@pytest.mark.integration
def test_manual_reservation_ignores_cancelled_overlap(
    db_engine: Engine,
    unit_ids: dict[str, uuid.UUID],
    make_reservation: Callable[..., uuid.UUID],
) -> None:
    make_reservation(unit_ids["beach"], day(5), day(8), status=ReservationStatus.CANCELLED.value)

    create_reservation(
        db_engine,
        ReservationCreatePayload(
            unit_id=unit_ids["beach"], guest_name="Ok", check_in=day(6), check_out=day(7)
        ),
    )

    (event,) = get_events(db_engine, *WINDOW)
    assert event.guest_name == "Ok"
    assert event.channel == "direct"
    assert event.external_id is None


@pytest.mark.integration
def test_unknown_unit_is_rejected(db_engine: Engine) -> None:
    with pytest.raises(UnitNotFound):
        create_block(
            db_engine,
            BlockCreatePayload(unit_id=uuid.uuid4(), start_date=day(1), end_date=day(2)),
        )


@pytest.mark.unit
def test_resolve_window_defaults_and_validation() -> None:
    start, end = resolve_window(DAY0, None, 30)
    assert end - start == timedelta(days=30)

    with pytest.raises(InvalidWindow):
        resolve_window(day(5), day(5), 30)
