"""
structlog setup shared by the API, the batch CLI and the scripts.

JSON lines at INFO for log shipping, a colored console renderer otherwise.
Request ids bound by RequestIDMiddleware reach every line through
merge_contextvars.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, cast

import structlog

from sync_ical.config import LOG_LEVEL

Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

# Feed servers, the job runner and access logs are chatty at INFO
QUIET_LOGGERS = ("urllib3", "requests", "apscheduler", "uvicorn.access")


def _renderer(level: str) -> Processor:
    if level == "INFO":
        return cast(Processor, structlog.processors.JSONRenderer())
    return cast(Processor, structlog.dev.ConsoleRenderer(colors=True))


def setup_logging(level: str = LOG_LEVEL) -> None:
    """
    Route stdlib logging to stdout and configure structlog on top of it.

    Args:
        level: Log level name, defaults to LOG_LEVEL.
    """
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=level,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(level),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
