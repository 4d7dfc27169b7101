from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from sync_ical.config import DRY_RUN
from sync_ical.db.readers.sync_logs import list_sync_logs
from sync_ical.db.writers.connections import delete_connection, insert_connection
from sync_ical.dependencies import get_db_engine
from sync_ical.routes._connection_helpers import (
    build_capabilities,
    get_connection_or_404,
    validate_channel_not_connected_or_422,
    validate_property_exists_or_404,
)
from sync_ical.schemas.connections import CapabilityFlags, ConnectionCreatePayload
from sync_ical.schemas.sync import RunResult
from sync_ical.services.reconcile import sync_connection

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/connections", status_code=status.HTTP_201_CREATED)
def create_connection(
    payload: ConnectionCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Attach a channel calendar feed to a property.

    Args:
        payload: Property, channel, and optional feed URL / listing id
        engine: Database engine

    Returns:
        dict: ID of the new connection and its capabilities
    """
    try:
        capabilities = build_capabilities(payload.ical_url)

        with engine.begin() as conn:
            validate_property_exists_or_404(conn, payload.property_id)
            validate_channel_not_connected_or_422(conn, payload.property_id, payload.channel.value)

            connection_id = insert_connection(
                conn,
                {
                    "property_id": payload.property_id,
                    "channel": payload.channel.value,
                    "ical_url": payload.ical_url,
                    "external_listing_id": payload.external_listing_id,
                    "capabilities": capabilities,
                },
            )

        logger.info(
            "connection_created",
            connection_id=str(connection_id),
            property_id=str(payload.property_id),
            channel=payload.channel.value,
        )
        return {
            "id": str(connection_id),
            "capabilities": CapabilityFlags(**capabilities).model_dump(),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("connection_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/connections/{connection_id}", status_code=status.HTTP_200_OK)
def delete_connection_endpoint(
    connection_id: UUID,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    """
    Remove a channel connection. Reservations it already created stay in place.
    """
    try:
        with engine.begin() as conn:
            get_connection_or_404(conn, connection_id)
            delete_connection(conn, connection_id)

        logger.info("connection_deleted", connection_id=str(connection_id))
        return {"message": f"Channel connection {connection_id} deleted"}

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(
            "connection_deletion_failed", connection_id=str(connection_id), error=str(e)
        )
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/connections/{connection_id}/sync", response_model=RunResult)
def sync_connection_endpoint(
    connection_id: UUID,
    dry_run: Optional[bool] = Query(None, description="Override DRY_RUN setting"),
    engine: Engine = Depends(get_db_engine),
) -> RunResult:
    """
    Reconcile one connection now and return its result.

    Sync failures come back as success=false with an error, not as HTTP errors.

    Args:
        connection_id: Channel connection to sync
        dry_run: Override DRY_RUN setting (optional)
        engine: Database engine

    Returns:
        RunResult: found/created/updated/skipped counts and error
    """
    try:
        with engine.connect() as conn:
            connection = get_connection_or_404(conn, connection_id)

        use_dry_run = DRY_RUN if dry_run is None else dry_run
        logger.info("sync_triggered", connection_id=str(connection_id), dry_run=use_dry_run)

        return sync_connection(engine, connection, dry_run=use_dry_run)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("sync_trigger_failed", connection_id=str(connection_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/connections/{connection_id}/sync-logs")
def list_sync_logs_endpoint(
    connection_id: UUID,
    limit: int = Query(20, ge=1, le=200),
    engine: Engine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    """
    Most recent reconciliation attempts of a connection, newest first.
    """
    with engine.connect() as conn:
        get_connection_or_404(conn, connection_id)
        return list_sync_logs(conn, connection_id, limit=limit)
