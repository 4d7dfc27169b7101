"""
Shared fixtures for the whole test suite.

The package reads its configuration at import time, so the environment is
pointed at a throwaway SQLite database before anything under sync_ical is
imported.
"""

from __future__ import annotations

import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Generator, Optional

_TEST_DB_DIR = tempfile.mkdtemp(prefix="sync-ical-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR}/test.db"
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["DRY_RUN"] = "false"

import pytest  # noqa: E402
from sqlalchemy import insert  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from sync_ical.db.engine import engine as _engine  # noqa: E402
from sync_ical.models.base import Base  # noqa: E402
from sync_ical.models.connections import ChannelConnection  # noqa: E402
from sync_ical.models.properties import Property, Unit  # noqa: E402
from sync_ical.models.reservations import Reservation  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"

BASE_TIME = datetime(2027, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def load_ics() -> Callable[[str], str]:
    """Reader for iCal fixtures in tests/fixtures."""

    def _load(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _load


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """
    Fresh schema per test on the SQLite test database.
    """
    Base.metadata.create_all(_engine)
    yield _engine
    Base.metadata.drop_all(_engine)


@pytest.fixture
def make_property(db_engine: Engine) -> Callable[..., uuid.UUID]:
    def _make(name: str = "Beach House") -> uuid.UUID:
        property_id = uuid.uuid4()
        with db_engine.begin() as conn:
            conn.execute(insert(Property).values(id=property_id, name=name))
        return property_id

    return _make


@pytest.fixture
def make_unit(db_engine: Engine) -> Callable[..., uuid.UUID]:
    counter = {"n": 0}

    def _make(
        property_id: uuid.UUID,
        name: str = "Main Unit",
        created_at: Optional[datetime] = None,
    ) -> uuid.UUID:
        # Explicit, strictly increasing created_at keeps "primary unit" deterministic
        counter["n"] += 1
        unit_id = uuid.uuid4()
        with db_engine.begin() as conn:
            conn.execute(
                insert(Unit).values(
                    id=unit_id,
                    property_id=property_id,
                    name=name,
                    created_at=created_at or BASE_TIME + timedelta(seconds=counter["n"]),
                )
            )
        return unit_id

    return _make


@pytest.fixture
def make_connection(db_engine: Engine) -> Callable[..., uuid.UUID]:
    counter = {"n": 0}

    def _make(
        property_id: uuid.UUID,
        channel: str = "airbnb",
        ical_url: Optional[str] = "https://feeds.example.com/airbnb.ics",
        capabilities: Optional[dict[str, bool]] = None,
    ) -> uuid.UUID:
        counter["n"] += 1
        connection_id = uuid.uuid4()
        if capabilities is None:
            capabilities = {"calendar_read": bool(ical_url)}
        with db_engine.begin() as conn:
            conn.execute(
                insert(ChannelConnection).values(
                    id=connection_id,
                    property_id=property_id,
                    channel=channel,
                    ical_url=ical_url,
                    capabilities=capabilities,
                    created_at=BASE_TIME + timedelta(seconds=counter["n"]),
                )
            )
        return connection_id

    return _make


@pytest.fixture
def make_reservation(db_engine: Engine) -> Callable[..., uuid.UUID]:
    def _make(
        unit_id: uuid.UUID,
        check_in: datetime,
        check_out: datetime,
        status: str = "confirmed",
        channel: str = "direct",
        guest_name: str = "Walk-in",
        external_id: Optional[str] = None,
        **extra: Any,
    ) -> uuid.UUID:
        reservation_id = uuid.uuid4()
        with db_engine.begin() as conn:
            conn.execute(
                insert(Reservation).values(
                    id=reservation_id,
                    unit_id=unit_id,
                    channel=channel,
                    guest_name=guest_name,
                    check_in=check_in,
                    check_out=check_out,
                    status=status,
                    external_id=external_id,
                    **extra,
                )
            )
        return reservation_id

    return _make
