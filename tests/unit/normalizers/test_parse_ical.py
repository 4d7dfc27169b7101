from datetime import datetime, timezone
from typing import Callable

import pytest

from sync_ical.errors import ParseError
from sync_ical.normalizers.ical import CanonicalEvent, parse_ical


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.unit
def test_parse_ical_all_day_events_resolve_to_midnight_utc(load_ics: Callable[[str], str]) -> None:
    events = parse_ical(load_ics("airbnb_basic.ics"))

    assert events == [
        CanonicalEvent(
            uid="1418fb94e984-aaa11@airbnb.com",
            title="Reserved",
            start=_utc(2027, 3, 1),
            end=_utc(2027, 3, 5),
        ),
        CanonicalEvent(
            uid="1418fb94e984-bbb22@airbnb.com",
            title="Airbnb (Not available)",
            start=_utc(2027, 3, 10),
            end=_utc(2027, 3, 15),
        ),
    ]


@pytest.mark.unit
def test_parse_ical_skips_event_without_end(load_ics: Callable[[str], str]) -> None:
    """
    A VEVENT with neither DTEND nor DURATION is dropped, the rest survive.
    """
    events = parse_ical(load_ics("missing_dtend.ics"))

    assert [e.uid for e in events] == ["vrbo-001", "vrbo-003"]
    assert events[1].title == ""


@pytest.mark.unit
def test_parse_ical_skips_event_with_unparsable_dtstart(load_ics: Callable[[str], str]) -> None:
    events = parse_ical(load_ics("broken_dtstart.ics"))

    assert [e.uid for e in events] == ["good-1@airbnb.com"]
    assert events[0].start == datetime(2027, 4, 10, tzinfo=timezone.utc)


@pytest.mark.unit
def test_parse_ical_handles_tzid_duration_and_floating_times(load_ics: Callable[[str], str]) -> None:
    events = parse_ical(load_ics("mixed_formats.ics"))

    assert len(events) == 3

    tz_event, duration_event, floating_event = events
    assert tz_event.start == _utc(2027, 6, 1, 19, 0)
    assert tz_event.end == _utc(2027, 6, 3, 15, 0)
    assert tz_event.title == "CLOSED - Not available"

    assert duration_event.start == _utc(2027, 6, 10, 14, 0)
    assert duration_event.end == _utc(2027, 6, 12, 14, 0)

    # Floating times are read as UTC
    assert floating_event.start == _utc(2027, 6, 15, 12, 0)
    assert floating_event.end == _utc(2027, 6, 16, 12, 0)


@pytest.mark.unit
def test_parse_ical_assigns_synthetic_uid_when_missing(load_ics: Callable[[str], str]) -> None:
    events = parse_ical(load_ics("mixed_formats.ics"))
    floating_event = events[2]

    assert floating_event.uid
    # Not stable across parses of the same document
    assert parse_ical(load_ics("mixed_formats.ics"))[2].uid != floating_event.uid


@pytest.mark.unit
def test_parse_ical_keeps_duplicate_uids_for_caller(load_ics: Callable[[str], str]) -> None:
    events = parse_ical(load_ics("duplicate_uid.ics"))

    assert [e.uid for e in events] == ["dup-1", "dup-1", "inverted-1"]


@pytest.mark.unit
def test_parse_ical_empty_calendar_returns_no_events() -> None:
    text = "BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//Empty//EN\nEND:VCALENDAR\n"

    assert parse_ical(text) == []


@pytest.mark.unit
@pytest.mark.parametrize(
    "text",
    [
        "<html><body>Service Unavailable</body></html>",
        "BEGIN:VCALENDAR\nBEGIN:VEVENT\nUID:x\n",
        "",
    ],
)
def test_parse_ical_raises_parse_error_for_unparsable_text(text: str) -> None:
    with pytest.raises(ParseError):
        parse_ical(text)


@pytest.mark.unit
def test_parse_ical_rejects_non_calendar_root() -> None:
    text = (
        "BEGIN:VEVENT\nUID:lonely\nDTSTART;VALUE=DATE:20270101\n"
        "DTEND;VALUE=DATE:20270102\nEND:VEVENT\n"
    )

    with pytest.raises(ParseError):
        parse_ical(text)
