"""
Liveness and readiness probes.

/ready reports the database check and, when the app has one, whether the
sync timer is started and a batch is in flight.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sync_ical.db.engine import check_engine_health

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check() -> JSONResponse:
    """
    Liveness probe. Always 200 while the process serves requests.

    Example:
        >>> GET /health
        {"status": "ok"}
    """
    return JSONResponse(content={"status": "ok"})


@router.get("/ready")
def readiness_check(request: Request) -> JSONResponse:
    """
    Readiness probe. 503 when the database cannot be reached.

    Example:
        >>> GET /ready
        {"status": "ready", "checks": {"database": "ok", "scheduler": "started"}}
    """
    checks: dict[str, Any] = {}

    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is not None:
        checks["scheduler"] = "started" if scheduler.timer_started else "stopped"
        checks["batch_running"] = scheduler.is_running

    if not check_engine_health():
        logger.error("readiness_check_failed", reason="database_not_accessible")
        checks["database"] = "failed"
        return JSONResponse(status_code=503, content={"status": "not ready", "checks": checks})

    checks["database"] = "ok"
    return JSONResponse(content={"status": "ready", "checks": checks})
