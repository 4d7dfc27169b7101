import uuid
from datetime import datetime, timedelta, timezone

import pytest

from sync_ical.schemas.calendar import TimedEvent
from sync_ical.services.conflicts import conflicting_event_ids, detect_conflicts, to_timed_events

UNIT_A = uuid.uuid4()
UNIT_B = uuid.uuid4()
DAY0 = datetime(2027, 3, 1, tzinfo=timezone.utc)


def day(n: int) -> datetime:
    return DAY0 + timedelta(days=n)


def event(unit_id: uuid.UUID, start: datetime, end: datetime, kind: str = "reservation") -> TimedEvent:
    return TimedEvent(id=uuid.uuid4(), unit_id=unit_id, kind=kind, start=start, end=end)


@pytest.mark.unit
def test_overlapping_events_produce_one_pair_with_intersection() -> None:
    a = event(UNIT_A, day(1), day(3))
    b = event(UNIT_A, day(2), day(4))

    conflicts = detect_conflicts([a, b])

    assert len(conflicts) == 1
    pair = conflicts[0]
    assert {pair.event_a.id, pair.event_b.id} == {a.id, b.id}
    assert pair.unit_id == UNIT_A
    assert pair.overlap_start == day(2)
    assert pair.overlap_end == day(3)


@pytest.mark.unit
def test_adjacent_events_do_not_conflict() -> None:
    a = event(UNIT_A, day(1), day(2))
    b = event(UNIT_A, day(2), day(3))

    assert detect_conflicts([a, b]) == []


@pytest.mark.unit
def test_events_on_different_units_do_not_conflict() -> None:
    a = event(UNIT_A, day(1), day(5))
    b = event(UNIT_B, day(2), day(4))

    assert detect_conflicts([a, b]) == []


@pytest.mark.unit
def test_result_does_not_depend_on_input_order() -> None:
    a = event(UNIT_A, day(1), day(10))
    b = event(UNIT_A, day(2), day(3))
    c = event(UNIT_A, day(8), day(12))
    d = event(UNIT_A, day(11), day(13))

    def pairs(events: list[TimedEvent]) -> set[frozenset[uuid.UUID]]:
        return {frozenset((p.event_a.id, p.event_b.id)) for p in detect_conflicts(events)}

    expected = {
        frozenset((a.id, b.id)),
        frozenset((a.id, c.id)),
        frozenset((c.id, d.id)),
    }
    assert pairs([a, b, c, d]) == expected
    assert pairs([d, c, b, a]) == expected


@pytest.mark.unit
def test_contained_event_intersection_is_the_inner_event() -> None:
    outer = event(UNIT_A, day(1), day(10), kind="block")
    inner = event(UNIT_A, day(3), day(4))

    (pair,) = detect_conflicts([inner, outer])

    assert pair.overlap_start == day(3)
    assert pair.overlap_end == day(4)


@pytest.mark.unit
def test_identical_intervals_conflict() -> None:
    a = event(UNIT_A, day(1), day(3))
    b = event(UNIT_A, day(1), day(3))

    assert len(detect_conflicts([a, b])) == 1


@pytest.mark.unit
def test_to_timed_events_drops_cancelled_and_completed_reservations() -> None:
    unit_id = uuid.uuid4()
    base = {"unit_id": unit_id, "channel": "airbnb", "guest_name": "G"}
    reservations = [
        {**base, "id": uuid.uuid4(), "status": "confirmed", "check_in": day(1), "check_out": day(3)},
        {**base, "id": uuid.uuid4(), "status": "cancelled", "check_in": day(2), "check_out": day(4)},
        {**base, "id": uuid.uuid4(), "status": "completed", "check_in": day(2), "check_out": day(4)},
        {**base, "id": uuid.uuid4(), "status": "pending", "check_in": day(5), "check_out": day(6)},
    ]
    blocks = [
        {
            "id": uuid.uuid4(),
            "unit_id": unit_id,
            "type": "maintenance",
            "start_date": day(5),
            "end_date": day(7),
        }
    ]

    events = to_timed_events(reservations, blocks)

    assert [e.status for e in events if e.kind == "reservation"] == ["confirmed", "pending"]
    assert [e.block_type for e in events if e.kind == "block"] == ["maintenance"]


@pytest.mark.unit
def test_cancelled_reservation_never_appears_in_conflicts() -> None:
    unit_id = uuid.uuid4()
    confirmed_id = uuid.uuid4()
    cancelled_id = uuid.uuid4()
    base = {"unit_id": unit_id, "channel": "vrbo", "guest_name": "G"}
    reservations = [
        {**base, "id": confirmed_id, "status": "confirmed", "check_in": day(1), "check_out": day(5)},
        {**base, "id": cancelled_id, "status": "cancelled", "check_in": day(2), "check_out": day(4)},
    ]

    conflicts = detect_conflicts(to_timed_events(reservations, []))

    assert conflicts == []


@pytest.mark.unit
def test_to_timed_events_treats_naive_datetimes_as_utc() -> None:
    naive = datetime(2027, 3, 1, 15, 0)
    row = {
        "id": uuid.uuid4(),
        "unit_id": uuid.uuid4(),
        "status": "confirmed",
        "channel": "direct",
        "guest_name": "G",
        "check_in": naive,
        "check_out": naive + timedelta(days=1),
    }

    (timed,) = to_timed_events([row], [])

    assert timed.start == datetime(2027, 3, 1, 15, 0, tzinfo=timezone.utc)


@pytest.mark.unit
def test_conflicting_event_ids_collects_both_sides() -> None:
    a = event(UNIT_A, day(1), day(3))
    b = event(UNIT_A, day(2), day(4))
    c = event(UNIT_A, day(10), day(11))

    flagged = conflicting_event_ids(detect_conflicts([a, b, c]))

    assert flagged == {a.id, b.id}
