import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

import structlog
from icalendar import Calendar

from sync_ical.errors import ParseError
from sync_ical.utils.datetime import to_utc_instant

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CanonicalEvent:
    """
    A feed entry reduced to the fields reconciliation consumes.

    start and end are aware UTC instants; the interval is half-open.
    """

    uid: str
    title: str
    start: datetime
    end: datetime


def _decoded_value(component: Any, name: str) -> Any:
    # Newer icalendar keeps unparsable values and raises on .dt access
    try:
        return getattr(component.get(name), "dt", None)
    except ValueError:
        return None


def _decoded_instant(component: Any, name: str) -> Optional[datetime]:
    value = _decoded_value(component, name)
    if isinstance(value, (date, datetime)):
        return to_utc_instant(value)
    return None


def _resolve_end(component: Any, start: datetime) -> Optional[datetime]:
    end = _decoded_instant(component, "DTEND")
    if end is not None:
        return end

    duration = _decoded_value(component, "DURATION")
    if isinstance(duration, timedelta):
        return start + duration
    return None


def parse_ical(ical_text: str) -> List[CanonicalEvent]:
    """
    Parse raw iCal text into canonical events.

    VEVENTs without a resolvable start or end instant are skipped. A VEVENT
    without a UID is given a random one, which is not stable across fetches.

    Args:
        ical_text: Raw body of an iCal feed.

    Returns:
        List of CanonicalEvent, in document order.

    Raises:
        ParseError: If the text is not an iCalendar document.
    """
    try:
        cal = Calendar.from_ical(ical_text)
    except Exception as err:
        raise ParseError(f"Failed to parse iCal: {err}") from err

    if getattr(cal, "name", None) != "VCALENDAR":
        raise ParseError("Failed to parse iCal: document root is not VCALENDAR")

    events: List[CanonicalEvent] = []
    skipped = 0

    for component in cal.walk("VEVENT"):
        start = _decoded_instant(component, "DTSTART")
        if start is None:
            skipped += 1
            continue

        end = _resolve_end(component, start)
        if end is None:
            skipped += 1
            continue

        uid = str(component.get("UID", "")).strip() or str(uuid.uuid4())
        title = str(component.get("SUMMARY", "")).strip()

        events.append(CanonicalEvent(uid=uid, title=title, start=start, end=end))

    if skipped:
        logger.debug("ical_events_skipped", skipped=skipped, parsed=len(events))

    return events
