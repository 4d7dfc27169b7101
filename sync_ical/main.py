# sync_ical/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sync_ical.config import ALLOWED_ORIGINS, SCHEDULER_ENABLED
from sync_ical.logging_config import setup_logging
from sync_ical.middleware import RequestIDMiddleware
from sync_ical.routes.calendar import router as calendar_router
from sync_ical.routes.connections import router as connections_router
from sync_ical.routes.health import router as health_router
from sync_ical.routes.metrics import router as metrics_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="iCal Calendar Sync API",
    description="Reconciles channel iCal feeds into per-unit reservations and flags conflicts",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(connections_router, tags=["Connections"])
app.include_router(calendar_router, prefix="/calendar", tags=["Calendar"])


@app.on_event("startup")
def startup_event() -> None:
    """Create the process-wide sync scheduler and start its timer if enabled."""
    from sync_ical.db.engine import engine
    from sync_ical.services.scheduler import SyncScheduler

    logger.info("FastAPI application starting up...")

    app.state.scheduler = SyncScheduler(engine)
    if SCHEDULER_ENABLED:
        app.state.scheduler.start()
    else:
        logger.info("scheduler_disabled")

    logger.info("FastAPI application initialized")


@app.on_event("shutdown")
def shutdown_event() -> None:
    """Stop the timer; an in-flight batch finishes on its own thread."""
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.stop()
