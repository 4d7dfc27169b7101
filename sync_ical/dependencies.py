"""
FastAPI dependency injection providers.

This module contains dependency providers for FastAPI routes, enabling better
testability through dependency injection and following FastAPI best practices.

Dependencies can be overridden in tests using app.dependency_overrides, making
it easy to inject mock objects for isolated unit testing.
"""

from __future__ import annotations

from typing import Generator

from fastapi import HTTPException, Request, status
from sqlalchemy.engine import Engine

from sync_ical.db.engine import engine
from sync_ical.services.scheduler import SyncScheduler


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Example:
        >>> from fastapi import Depends
        >>> from sync_ical.dependencies import get_db_engine
        >>>
        >>> @router.post("/connections")
        >>> def create_connection(
        ...     payload: ConnectionCreatePayload,
        ...     engine: Engine = Depends(get_db_engine),
        ... ):
        ...     with engine.begin() as conn:
        ...         ...

    Testing Example:
        >>> mock_engine = Mock(spec=Engine)
        >>> app.dependency_overrides[get_db_engine] = lambda: mock_engine
    """
    yield engine


def get_scheduler(request: Request) -> SyncScheduler:
    """
    Provide the process-wide SyncScheduler created at application startup.

    Raises:
        HTTPException: 503 if the application has not finished starting up.
    """
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduler not initialized",
        )
    return scheduler
