import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import json
import logging
from uuid import UUID

from sync_ical.db.engine import engine
from sync_ical.db.readers.connections import get_connection
from sync_ical.logging_config import setup_logging
from sync_ical.services.reconcile import sync_connection

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    """
    Reconcile a single channel connection and print its RunResult.
    """
    parser = argparse.ArgumentParser(description="Sync one channel connection's iCal feed.")
    parser.add_argument("connection_id", type=UUID, help="Channel connection ID")
    parser.add_argument("--dry-run", action="store_true", help="Compute counts, write nothing")
    args = parser.parse_args()

    with engine.connect() as conn:
        connection = get_connection(conn, args.connection_id)
    if connection is None:
        logger.error("Channel connection %s not found", args.connection_id)
        raise SystemExit(2)

    logger.info("Starting sync for connection_id=%s", args.connection_id)
    result = sync_connection(engine, connection, dry_run=args.dry_run)
    print(json.dumps(result.model_dump(), indent=2))

    if not result.success:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
