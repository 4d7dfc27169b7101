"""
SQLAlchemy engine singleton with production-ready connection pooling.

This module creates a single engine instance shared by the reconciler, the
scheduler and the HTTP layer. Pool sizing only applies to server databases;
SQLite (used for local runs and the test suite) keeps SQLAlchemy's defaults.
"""

from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from sync_ical.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")

_engine_options: dict[str, Any] = {}
if not DATABASE_URL.startswith("sqlite"):
    _engine_options = {
        "pool_size": 10,  # Number of connections to maintain in the pool
        "max_overflow": 20,  # Additional connections when pool is exhausted
        "pool_pre_ping": True,  # Detect stale connections before use
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }

engine: Engine = create_engine(DATABASE_URL, echo=False, **_engine_options)


def check_engine_health() -> bool:
    """
    Check if database engine is healthy and connections are working.

    This function is used by the /ready endpoint to verify database
    connectivity before allowing traffic to the service.

    Returns:
        bool: True if database is reachable and healthy, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
