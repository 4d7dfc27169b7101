"""
Calendar routes: batch sync control, conflicts, the unified events view,
the reservation list and manual reservations/blocks.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from sync_ical.config import CONFLICT_WINDOW_DAYS, EVENTS_WINDOW_DAYS
from sync_ical.db.readers.blocks import block_exists
from sync_ical.db.writers.blocks import delete_block
from sync_ical.dependencies import get_db_engine, get_scheduler
from sync_ical.errors import InvalidWindow, ReservationOverlap, UnitNotFound
from sync_ical.models.enums import ReservationStatus
from sync_ical.schemas.calendar import (
    BlockCreatePayload,
    CalendarEvent,
    ConflictPair,
    ReservationCreatePayload,
    ReservationView,
)
from sync_ical.schemas.sync import BatchStatus
from sync_ical.services import calendar as calendar_service
from sync_ical.services.scheduler import BATCH_FAILED, BATCH_SKIPPED, SyncScheduler

logger = structlog.get_logger(__name__)
router = APIRouter()


def _window_or_400(
    start: Optional[datetime], end: Optional[datetime], default_days: int
) -> tuple[datetime, datetime]:
    try:
        return calendar_service.resolve_window(start, end, default_days)
    except InvalidWindow as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@router.post("/sync/all")
def sync_all(scheduler: SyncScheduler = Depends(get_scheduler)) -> dict[str, Any]:
    """
    Run a batch over every connection now.

    If a batch is already running, returns the previous batch's results
    instead of starting another one.
    """
    try:
        results, outcome = scheduler.trigger_batch()
        if outcome == BATCH_FAILED:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Could not load channel connections",
            )
        message = "Sync already in progress" if outcome == BATCH_SKIPPED else "Sync completed"
        return {"message": message, "results": [r.model_dump(mode="json") for r in results]}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("batch_trigger_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/sync/status", response_model=BatchStatus)
def sync_status(scheduler: SyncScheduler = Depends(get_scheduler)) -> BatchStatus:
    return scheduler.get_status()


@router.get("/conflicts", response_model=list[ConflictPair])
def list_conflicts(
    start: Optional[datetime] = Query(None, description="Window start, defaults to now"),
    end: Optional[datetime] = Query(None, description="Window end"),
    property_id: Optional[UUID] = Query(None),
    unit_id: Optional[UUID] = Query(None),
    engine: Engine = Depends(get_db_engine),
) -> list[ConflictPair]:
    """
    Overlapping reservation/block pairs within a window, optionally scoped to a property or unit.
    """
    window_start, window_end = _window_or_400(start, end, CONFLICT_WINDOW_DAYS)
    try:
        return calendar_service.get_conflicts(
            engine, window_start, window_end, property_id=property_id, unit_id=unit_id
        )
    except Exception as e:
        logger.exception("conflicts_query_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/events", response_model=list[CalendarEvent])
def list_events(
    start: Optional[datetime] = Query(None, description="Window start, defaults to now"),
    end: Optional[datetime] = Query(None, description="Window end"),
    property_id: Optional[UUID] = Query(None),
    unit_id: Optional[UUID] = Query(None),
    engine: Engine = Depends(get_db_engine),
) -> list[CalendarEvent]:
    """
    Active reservations and blocks within a window, each flagged with has_conflict.
    """
    window_start, window_end = _window_or_400(start, end, EVENTS_WINDOW_DAYS)
    try:
        return calendar_service.get_events(
            engine, window_start, window_end, property_id=property_id, unit_id=unit_id
        )
    except Exception as e:
        logger.exception("events_query_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/reservations", response_model=list[ReservationView])
def list_reservations(
    property_id: Optional[UUID] = Query(None),
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    engine: Engine = Depends(get_db_engine),
) -> list[ReservationView]:
    """
    Reservations of every status ordered by check-in, optionally for one property or status.
    """
    try:
        return calendar_service.get_reservations(
            engine,
            property_id=property_id,
            status=status_filter.value if status_filter else None,
        )
    except Exception as e:
        logger.exception("reservations_query_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/reservations", status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    """
    Record a manual reservation. Rejected with 422 when it overlaps an active reservation.
    """
    try:
        reservation_id = calendar_service.create_reservation(engine, payload)
        return {"id": str(reservation_id)}
    except UnitNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ReservationOverlap as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except Exception as e:
        logger.exception("reservation_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/blocks", status_code=status.HTTP_201_CREATED)
def create_block(
    payload: BlockCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    try:
        block_id = calendar_service.create_block(engine, payload)
        return {"id": str(block_id)}
    except UnitNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.exception("block_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/blocks/{block_id}", status_code=status.HTTP_200_OK)
def delete_block_endpoint(
    block_id: UUID,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    try:
        with engine.begin() as conn:
            if not block_exists(conn, block_id):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Block {block_id} not found",
                )
            delete_block(conn, block_id)

        logger.info("block_deleted", block_id=str(block_id))
        return {"message": f"Block {block_id} deleted"}

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("block_deletion_failed", block_id=str(block_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
