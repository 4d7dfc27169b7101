"""
Integration tests for a full SyncScheduler batch over the SQLite test database.
"""

from __future__ import annotations

import threading
import uuid
from typing import Any, Callable
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from sync_ical.errors import FeedHTTPError
from sync_ical.models.reservations import Reservation
from sync_ical.models.sync_logs import SyncLog
from sync_ical.services.scheduler import SyncScheduler

FETCH = "sync_ical.pollers.feeds.fetch_feed"


def _count(engine: Engine, model: Any) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def three_connections(
    make_property: Callable[..., uuid.UUID],
    make_unit: Callable[..., uuid.UUID],
    make_connection: Callable[..., uuid.UUID],
) -> list[uuid.UUID]:
    ids = []
    for i, channel in enumerate(["airbnb", "vrbo", "booking"]):
        property_id = make_property(f"Property {i}")
        make_unit(property_id)
        ids.append(
            make_connection(
                property_id, channel=channel, ical_url=f"https://feeds.example.com/{channel}.ics"
            )
        )
    return ids


@pytest.mark.integration
def test_batch_continues_after_one_connection_fails(
    db_engine: Engine, three_connections: list[uuid.UUID], load_ics: Callable[[str], str]
) -> None:
    feed = load_ics("airbnb_basic.ics")

    def fetch(url: str) -> str:
        if url.endswith("vrbo.ics"):
            raise FeedHTTPError(500)
        return feed

    with patch(FETCH, side_effect=fetch):
        results = SyncScheduler(db_engine).run_batch()

    assert [r.connection_id for r in results] == three_connections
    assert [r.success for r in results] == [True, False, True]
    assert [r.channel for r in results] == ["airbnb", "vrbo", "booking"]
    assert results[1].error == "Failed to fetch iCal: 500"
    assert [r.created for r in results] == [2, 0, 2]
    assert _count(db_engine, Reservation) == 4
    assert _count(db_engine, SyncLog) == 3


@pytest.mark.integration
def test_connections_without_feed_url_are_not_enumerated(
    db_engine: Engine,
    make_property: Callable[..., uuid.UUID],
    make_unit: Callable[..., uuid.UUID],
    make_connection: Callable[..., uuid.UUID],
    load_ics: Callable[[str], str],
) -> None:
    property_id = make_property()
    make_unit(property_id)
    make_connection(property_id, channel="airbnb")
    make_connection(property_id, channel="direct", ical_url=None)

    with patch(FETCH, return_value=load_ics("airbnb_basic.ics")):
        results = SyncScheduler(db_engine).run_batch()

    assert [r.channel for r in results] == ["airbnb"]


@pytest.mark.integration
def test_property_without_unit_fails_only_its_connection(
    db_engine: Engine,
    make_property: Callable[..., uuid.UUID],
    make_unit: Callable[..., uuid.UUID],
    make_connection: Callable[..., uuid.UUID],
    load_ics: Callable[[str], str],
) -> None:
    empty_property = make_property("Empty")
    make_connection(empty_property, channel="airbnb")
    full_property = make_property("Full")
    make_unit(full_property)
    make_connection(full_property, channel="airbnb")

    with patch(FETCH, return_value=load_ics("airbnb_basic.ics")):
        results = SyncScheduler(db_engine).run_batch()

    assert [(r.property_name, r.success) for r in results] == [("Empty", False), ("Full", True)]
    assert results[0].error == "No unit found for property"


@pytest.mark.integration
def test_manual_trigger_during_slow_batch_does_not_duplicate_writes(
    db_engine: Engine,
    make_property: Callable[..., uuid.UUID],
    make_unit: Callable[..., uuid.UUID],
    make_connection: Callable[..., uuid.UUID],
    load_ics: Callable[[str], str],
) -> None:
    """
    A slow fetch holds the first batch open; a second trigger returns the
    previous snapshot and the feed is fetched exactly once.
    """
    property_id = make_property()
    make_unit(property_id)
    make_connection(property_id, channel="airbnb")

    feed = load_ics("airbnb_basic.ics")
    entered = threading.Event()
    release = threading.Event()
    fetches = {"n": 0}

    def slow_fetch(url: str) -> str:
        fetches["n"] += 1
        entered.set()
        release.wait(timeout=5)
        return feed

    scheduler = SyncScheduler(db_engine)
    outcome: dict[str, Any] = {}

    with patch(FETCH, side_effect=slow_fetch):
        worker = threading.Thread(target=lambda: outcome.setdefault("first", scheduler.run_batch()))
        worker.start()
        assert entered.wait(timeout=5)

        second = scheduler.run_batch()
        status_during = scheduler.get_status()

        release.set()
        worker.join(timeout=10)

    assert second == []
    assert status_during.is_running is True
    assert fetches["n"] == 1
    assert len(outcome["first"]) == 1
    assert outcome["first"][0].created == 2
    assert _count(db_engine, Reservation) == 2
    assert _count(db_engine, SyncLog) == 1

    status_after = scheduler.get_status()
    assert status_after.is_running is False
    assert status_after.last_results == outcome["first"]
