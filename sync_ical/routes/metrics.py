"""
Prometheus scrape endpoint.

Example:
    GET /metrics

    Response:
        # HELP ical_feed_fetches_total Total number of feed fetch-and-parse operations
        # TYPE ical_feed_fetches_total counter
        ical_feed_fetches_total{channel="airbnb",status="success"} 42.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Expose every metric of the default registry in the text exposition format.

    Returns:
        Response: Metrics with Content-Type text/plain; version=0.0.4
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
