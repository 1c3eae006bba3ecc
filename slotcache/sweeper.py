"""
Periodic removal of expired entries.

Lazy expiry on read only touches keys that get read again; the sweep
clears the rest. Run once at startup and then every `interval` seconds.
"""

import asyncio
import logging

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.errors import StoreError

log = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 3600


def sweep_once(store: CacheStore) -> int:
    """Delete expired entries. Store failures are logged and reported as 0."""
    try:
        removed = store.sweep_expired()
    except StoreError as exc:
        log.error("expiry sweep failed: %s", exc)
        return 0
    if removed:
        log.info("expiry sweep removed %d entr%s", removed, "y" if removed == 1 else "ies")
    else:
        log.debug("expiry sweep: nothing expired")
    return removed


async def run_sweeper(store: CacheStore, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
    """Sweep forever. Cancel the task to stop."""
    log.info("Sweeper started: interval=%ss", interval)
    while True:
        await asyncio.sleep(interval)
        try:
            sweep_once(store)
        except Exception as exc:
            log.error("expiry sweep crashed, retrying next interval: %s", exc)
