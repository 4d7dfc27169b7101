"""UTC datetime utilities."""

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to timezone-aware UTC.

    Naive datetimes are taken to already be in UTC. SQLite hands stored
    timestamps back without tzinfo, so every comparison between a stored
    instant and a fetched one goes through here first.

    Args:
        value: Naive or aware datetime

    Returns:
        Aware datetime in UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_instant(value: date | datetime) -> datetime:
    """
    Resolve an iCalendar DATE or DATE-TIME value to a UTC instant.

    DATE values (all-day entries) resolve to midnight UTC of that day.

    Args:
        value: date or datetime decoded from a calendar property

    Returns:
        Aware datetime in UTC
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)
