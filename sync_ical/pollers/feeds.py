import structlog

from sync_ical.metrics import feed_fetch_duration, feed_fetch_total
from sync_ical.network.client import fetch_feed
from sync_ical.normalizers.ical import CanonicalEvent, parse_ical

logger = structlog.get_logger(__name__)


def poll_feed(url: str, channel: str) -> list[CanonicalEvent]:
    """
    Fetch a channel's iCal feed and parse it into canonical events.

    Args:
        url (str): Feed URL
        channel (str): Channel the feed belongs to, used as metric label

    Returns:
        list[CanonicalEvent]: Events parsed from the feed

    Raises:
        NetworkError: If the feed cannot be downloaded
        ParseError: If the feed is not a valid iCalendar document
    """
    with feed_fetch_duration.labels(channel=channel).time():
        try:
            events = parse_ical(fetch_feed(url))

            logger.info("feed_polled", channel=channel, events=len(events))

            feed_fetch_total.labels(channel=channel, status="success").inc()
            return events
        except Exception:
            feed_fetch_total.labels(channel=channel, status="failure").inc()
            raise
