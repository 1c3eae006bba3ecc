"""
Local process runner for the slot availability cache API.

Serves the HTTP API with uvicorn. The app sweeps expired entries at
startup and every SLOT_CACHE_SWEEP_INTERVAL seconds afterwards.

Usage:
    source .env && python scripts/run.py

Environment variables:
    BOOKING_WEBHOOK_URL       - availability webhook (required)
    BOOKING_WEBHOOK_TIMEOUT   - seconds before an upstream call fails (default: 30)
    SLOT_CACHE_BACKEND        - "sqlite", "json" or "memory" (default: sqlite)
    SLOT_CACHE_DB_PATH        - SQLite path (default: data/slot_cache.db)
    SLOT_CACHE_JSON_PATH      - JSON cache file (default: data/slot_cache.json)
    SLOT_CACHE_TTL_HOURS      - entry lifetime (default: 24)
    SLOT_CACHE_SWEEP_INTERVAL - seconds between expiry sweeps, 0 disables (default: 3600)
    SLOT_CACHE_ADMIN_ENABLED  - expose /cache admin routes (default: false)
    DISPLAY_TIMEZONE          - timezone for displayed times (default: America/Los_Angeles)
    LOG_LEVEL                 - logging level (default: INFO)
    HOST, PORT                - bind address (default: 127.0.0.1:8000)
"""

import logging
import os
import sys

import uvicorn

# Make sure project root is on sys.path when run as a script
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from slotcache.api import create_app
from slotcache.wiring import components_from_env

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s  %(levelname)-7s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger(__name__)


def main() -> None:
    try:
        components = components_from_env()
    except RuntimeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "8000"))
    log.info(
        "Slot cache API starting — store=%s  admin=%s  sweep=%ss",
        type(components.store).__name__,
        components.admin_enabled,
        components.sweep_interval,
    )
    uvicorn.run(create_app(components), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
