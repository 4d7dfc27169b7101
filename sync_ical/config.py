import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS")
if not ALLOWED_ORIGINS_RAW:
    raise ValueError("ALLOWED_ORIGINS must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

# Feed fetching
FEED_TIMEOUT_SECONDS = float(os.getenv("FEED_TIMEOUT_SECONDS", "30"))

# Scheduler
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
SYNC_INTERVAL_MINUTES = int(os.getenv("SYNC_INTERVAL_MINUTES", "30"))
SYNC_INITIAL_DELAY_SECONDS = int(os.getenv("SYNC_INITIAL_DELAY_SECONDS", "10"))
SYNC_MAX_WORKERS = max(1, int(os.getenv("SYNC_MAX_WORKERS", "1")))

# Calendar queries
CONFLICT_WINDOW_DAYS = int(os.getenv("CONFLICT_WINDOW_DAYS", "365"))
EVENTS_WINDOW_DAYS = int(os.getenv("EVENTS_WINDOW_DAYS", "30"))
