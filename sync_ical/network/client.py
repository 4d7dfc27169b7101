"""
Client module for downloading channel iCal feeds over HTTP.

One GET per call with a bounded timeout. Retries are left to the next
scheduled batch rather than done inline.
"""

import time
from typing import Optional

import requests
import structlog

from sync_ical.config import FEED_TIMEOUT_SECONDS
from sync_ical.errors import FeedHTTPError, NetworkError
from sync_ical.metrics import feed_http_latency, feed_http_requests

logger = structlog.get_logger(__name__)

USER_AGENT = "sync-ical/1.0"


def fetch_feed(url: str, timeout: Optional[float] = None) -> str:
    """
    Download the raw text of an iCal feed.

    Args:
        url (str): Feed URL published by the channel.
        timeout (Optional[float], optional): Seconds before the request is
            abandoned. Defaults to FEED_TIMEOUT_SECONDS.

    Returns:
        str: Response body decoded as text.

    Raises:
        FeedHTTPError: If the server answers with a non-2xx status.
        NetworkError: If the request fails at the transport level.
    """
    effective_timeout = timeout if timeout is not None else FEED_TIMEOUT_SECONDS
    headers = {"User-Agent": USER_AGENT, "Accept": "text/calendar, */*"}

    start_time = time.time()
    try:
        res = requests.get(url, headers=headers, timeout=effective_timeout)
    except requests.RequestException as err:
        feed_http_requests.labels(status_code="error").inc()
        feed_http_latency.observe(time.time() - start_time)
        logger.warning("feed_request_failed", url=url, error=str(err))
        raise NetworkError(f"Failed to fetch iCal: {err}") from err

    feed_http_latency.observe(time.time() - start_time)
    feed_http_requests.labels(status_code=str(res.status_code)).inc()

    if not 200 <= res.status_code < 300:
        logger.warning("feed_http_error", url=url, status_code=res.status_code)
        raise FeedHTTPError(res.status_code)

    # Feed servers often omit the charset; RFC 5545 mandates UTF-8
    if res.encoding is None or res.encoding.lower() == "iso-8859-1":
        res.encoding = "utf-8"

    logger.debug("feed_fetched", url=url, bytes=len(res.content))
    return res.text
