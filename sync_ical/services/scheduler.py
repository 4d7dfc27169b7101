"""
Periodic single-flight sync of every channel connection.

Timer ticks and manual triggers both go through SyncScheduler.run_batch(),
which lets at most one batch run at a time. A trigger arriving while a batch
is running returns the previous batch's results instead of starting another.

Uses APScheduler's BackgroundScheduler for the timer.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sync_ical.config import (
    DRY_RUN,
    SYNC_INITIAL_DELAY_SECONDS,
    SYNC_INTERVAL_MINUTES,
    SYNC_MAX_WORKERS,
)
from sync_ical.db.readers.connections import list_syncable_connections
from sync_ical.metrics import sync_batch_duration, sync_batches, syncable_connections
from sync_ical.schemas.sync import BatchStatus, ConnectionSyncResult
from sync_ical.services.reconcile import sync_connection
from sync_ical.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

INTERVAL_JOB_ID = "ical_sync_interval"
INITIAL_JOB_ID = "ical_sync_initial"

BATCH_COMPLETED = "completed"
BATCH_SKIPPED = "skipped"
BATCH_FAILED = "failed"


class SyncScheduler:
    """
    Owns the batch lifecycle and the last batch's snapshot.

    States are Idle and Running; Running is held by a non-blocking lock so
    concurrent triggers can never start a second batch. The snapshot is
    published under its own lock only after every connection has finished.
    """

    def __init__(
        self,
        engine: Engine,
        interval_minutes: int = SYNC_INTERVAL_MINUTES,
        initial_delay_seconds: int = SYNC_INITIAL_DELAY_SECONDS,
        max_workers: int = SYNC_MAX_WORKERS,
        dry_run: bool = DRY_RUN,
    ) -> None:
        self.engine = engine
        self.interval = timedelta(minutes=interval_minutes)
        self.initial_delay = timedelta(seconds=initial_delay_seconds)
        self.max_workers = max(1, max_workers)
        self.dry_run = dry_run

        self._batch_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._last_run_at: Optional[datetime] = None
        self._last_results: list[ConnectionSyncResult] = []
        self._timer: Optional[BackgroundScheduler] = None

    @property
    def is_running(self) -> bool:
        """True while a batch is in flight."""
        return self._batch_lock.locked()

    @property
    def timer_started(self) -> bool:
        return self._timer is not None and self._timer.running

    def start(self) -> None:
        """
        Start the periodic timer plus a one-shot run shortly after start.
        """
        if self.timer_started:
            logger.warning("scheduler_already_started")
            return

        timer = BackgroundScheduler(timezone="UTC")
        timer.add_job(
            self._run_scheduled,
            IntervalTrigger(seconds=int(self.interval.total_seconds())),
            id=INTERVAL_JOB_ID,
            name="Sync all channel connections",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        timer.add_job(
            self._run_scheduled,
            DateTrigger(run_date=utc_now() + self.initial_delay),
            id=INITIAL_JOB_ID,
            name="Initial sync after startup",
            replace_existing=True,
        )
        timer.start()
        self._timer = timer

        logger.info(
            "scheduler_started",
            interval_seconds=int(self.interval.total_seconds()),
            initial_delay_seconds=self.initial_delay.total_seconds(),
        )

    def stop(self) -> None:
        """
        Stop the timer. A batch already running is left to finish on its thread.
        """
        if self._timer is None:
            return

        self._timer.shutdown(wait=False)
        self._timer = None
        logger.info("scheduler_stopped", batch_in_flight=self.is_running)

    def _run_scheduled(self) -> None:
        # Timer jobs must never raise into the APScheduler worker
        try:
            self.run_batch()
        except Exception as e:
            logger.exception("scheduled_batch_failed", error=str(e))

    def run_batch(self) -> list[ConnectionSyncResult]:
        """
        Reconcile every connection that has a feed URL.

        Returns the previous batch's results without doing anything when a
        batch is already running or the connections cannot be listed.

        Returns:
            list[ConnectionSyncResult]: One entry per connection, in creation order.
        """
        results, _ = self.trigger_batch()
        return results

    def trigger_batch(self) -> tuple[list[ConnectionSyncResult], str]:
        """
        Like run_batch(), but also reports what happened to this trigger.

        Returns:
            tuple: (results, outcome) where outcome is BATCH_COMPLETED,
            BATCH_SKIPPED when another batch was in flight, or BATCH_FAILED
            when the connections could not be listed. Only a completed batch
            replaces the published snapshot.
        """
        if not self._batch_lock.acquire(blocking=False):
            logger.info("batch_already_running")
            sync_batches.labels(status=BATCH_SKIPPED).inc()
            with self._state_lock:
                return list(self._last_results), BATCH_SKIPPED

        try:
            start_time = time.time()
            logger.info("batch_started")

            results = self._sync_all()
            if results is None:
                sync_batches.labels(status=BATCH_FAILED).inc()
                with self._state_lock:
                    return list(self._last_results), BATCH_FAILED

            with self._state_lock:
                self._last_results = results
                self._last_run_at = utc_now()

            sync_batch_duration.observe(time.time() - start_time)
            sync_batches.labels(status=BATCH_COMPLETED).inc()
            logger.info(
                "batch_completed",
                connections=len(results),
                failed=sum(1 for r in results if not r.success),
                duration_seconds=round(time.time() - start_time, 3),
            )
            return results, BATCH_COMPLETED
        finally:
            self._batch_lock.release()

    def _sync_all(self) -> Optional[list[ConnectionSyncResult]]:
        try:
            with self.engine.connect() as conn:
                connections = list_syncable_connections(conn)
        except SQLAlchemyError as e:
            logger.exception("syncable_connections_query_failed", error=str(e))
            return None

        syncable_connections.set(len(connections))
        logger.info("syncable_connections_found", count=len(connections))

        if self.max_workers == 1 or len(connections) <= 1:
            return [self._sync_one(connection) for connection in connections]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            # map() keeps results in connection order
            return list(pool.map(self._sync_one, connections))

    def _sync_one(self, connection: dict[str, Any]) -> ConnectionSyncResult:
        base = {
            "connection_id": connection["id"],
            "property_name": connection.get("property_name") or "",
            "channel": connection["channel"],
        }
        try:
            result = sync_connection(self.engine, connection, dry_run=self.dry_run)
        except Exception as e:
            logger.exception(
                "connection_sync_failed",
                connection_id=str(connection["id"]),
                channel=connection["channel"],
                error=str(e),
            )
            return ConnectionSyncResult(**base, success=False, error=str(e))

        return ConnectionSyncResult(
            **base,
            success=result.success,
            created=result.created,
            updated=result.updated,
            error=result.error,
        )

    def get_status(self) -> BatchStatus:
        """
        Snapshot of the scheduler for operators.

        Returns:
            BatchStatus: next_run_at is last_run_at plus the interval, None before the first batch.
        """
        with self._state_lock:
            last_run_at = self._last_run_at
            last_results = list(self._last_results)

        return BatchStatus(
            is_running=self.is_running,
            last_run_at=last_run_at,
            last_results=last_results,
            next_run_at=last_run_at + self.interval if last_run_at else None,
        )
