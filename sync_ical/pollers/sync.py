import structlog

from sync_ical.config import DRY_RUN
from sync_ical.db.engine import engine
from sync_ical.logging_config import setup_logging
from sync_ical.services.scheduler import BATCH_FAILED, SyncScheduler

# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    # Run one batch across every connection with a feed URL, then exit
    results, outcome = SyncScheduler(engine, dry_run=DRY_RUN).trigger_batch()
    failed = [r for r in results if not r.success]
    logger.info(
        "cli_batch_finished", outcome=outcome, connections=len(results), failed=len(failed)
    )
    if outcome == BATCH_FAILED or failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
