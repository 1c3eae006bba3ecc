"""
AvailabilityService — cache-aside reads of a day's slots for one location.

Flow for get_day(date, location):
  1. Read the store (skipped when force_refresh). Hit -> return, no fetch.
  2. Miss -> join an in-flight fetch for the same key if one is still valid,
     otherwise start one.
  3. Fetch succeeded -> write the entry back (unless an invalidation ran
     while the fetch was out) and return the slots.
  4. Fetch failed -> nothing is written; the error reaches the caller as is.

Store failures never fail a read: a broken read is a miss, a broken write
is logged and the fetched slots are still returned.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from datetime import date

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.errors import StoreError, ValidationError
from slotcache.domain.fetcher import AvailabilityFetcher
from slotcache.domain.keys import cache_key, parse_day
from slotcache.domain.slots import CacheEntry, Slot
from slotcache.versions import InvalidationVersions, VersionStamp

log = logging.getLogger(__name__)


@dataclass
class ServiceConfig:
    store: CacheStore
    fetcher: AvailabilityFetcher
    versions: InvalidationVersions = field(default_factory=InvalidationVersions)
    coalesce: bool = True               # False reproduces the thundering herd
    discard_stale_fetches: bool = True  # False lets a pre-invalidation fetch write back


@dataclass
class _InFlight:
    task: asyncio.Task
    stamp: VersionStamp


class AvailabilityService:
    """
    Cache-aside orchestrator over a CacheStore and an AvailabilityFetcher.

    Build one per process and pass it around; it holds the in-flight
    registry, so two instances would not coalesce with each other.
    """

    def __init__(self, config: ServiceConfig):
        self._cfg = config
        self._in_flight: dict[str, _InFlight] = {}

    @property
    def versions(self) -> InvalidationVersions:
        return self._cfg.versions

    async def get_day(
        self,
        day: date | str,
        location: str,
        force_refresh: bool = False,
    ) -> list[Slot]:
        """Return the slots for (day, location), fetching only on a miss or when forced."""
        day = parse_day(day)
        if not isinstance(location, str) or not location.strip():
            raise ValidationError("location is required")
        key = cache_key(day, location)

        if force_refresh:
            log.info("key=%s force refresh: skipping cache read", key)
        else:
            entry = self._read(key)
            if entry is not None:
                log.debug("key=%s cache hit (%d slots)", key, len(entry.slots))
                return list(entry.slots)

            pending = self._in_flight.get(key) if self._cfg.coalesce else None
            if pending is not None and self._cfg.versions.is_current(day, location, pending.stamp):
                log.debug("key=%s cache miss: joining in-flight fetch", key)
                return list(await asyncio.shield(pending.task))
            log.debug("key=%s cache miss", key)

        stamp = self._cfg.versions.stamp(day, location)
        task = asyncio.ensure_future(self._fetch_and_store(key, day, location, stamp))
        if self._cfg.coalesce:
            self._in_flight[key] = _InFlight(task, stamp)
            task.add_done_callback(functools.partial(self._settled, key))
        return list(await asyncio.shield(task))

    def _read(self, key: str) -> CacheEntry | None:
        try:
            return self._cfg.store.get(key)
        except StoreError as exc:
            log.warning("key=%s cache read failed, treating as miss: %s", key, exc)
            return None

    async def _fetch_and_store(
        self,
        key: str,
        day: date,
        location: str,
        stamp: VersionStamp,
    ) -> list[Slot]:
        try:
            slots = await self._cfg.fetcher.fetch(location, day)
        except Exception as exc:
            log.error("key=%s upstream fetch failed: %s", key, exc)
            raise

        # No await between the version check and the upsert; an invalidation must
        # not slip in between them.
        if self._cfg.discard_stale_fetches and not self._cfg.versions.is_current(day, location, stamp):
            log.warning("key=%s invalidated while fetch was in flight: result not cached", key)
            return slots

        try:
            self._cfg.store.upsert(CacheEntry.new(day, location, slots))
        except StoreError as exc:
            log.error("key=%s cache write failed, returning fresh data anyway: %s", key, exc)
        else:
            log.info("key=%s cached %d slot(s)", key, len(slots))
        return slots

    def _settled(self, key: str, task: asyncio.Task) -> None:
        current = self._in_flight.get(key)
        if current is not None and current.task is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Waiters received the outcome already; mark the exception retrieved.
            task.exception()

    def in_flight_keys(self) -> list[str]:
        return list(self._in_flight)
