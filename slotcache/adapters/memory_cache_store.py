"""
In-memory CacheStore for testing — no database required.
"""

import threading
from collections.abc import Callable
from datetime import date, datetime, timedelta

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.keys import cache_key
from slotcache.domain.slots import CACHE_TTL, CacheEntry, utcnow


class InMemoryCacheStore(CacheStore):

    def __init__(self, clock: Callable[[], datetime] = utcnow, ttl: timedelta = CACHE_TTL):
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._ttl = ttl

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry

    def upsert(self, entry: CacheEntry) -> CacheEntry:
        stored = entry.stamped(self._clock(), self._ttl)
        with self._lock:
            self._entries[stored.key] = stored
        return stored

    def delete_by_key(self, key: str) -> int:
        with self._lock:
            return 1 if self._entries.pop(key, None) is not None else 0

    def delete_by_date(self, day: date, location: str | None = None) -> int:
        if location is not None:
            return self.delete_by_key(cache_key(day, location))
        with self._lock:
            doomed = [k for k, e in self._entries.items() if e.day == day]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def delete_all(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def sweep_expired(self) -> int:
        now = self._clock()
        with self._lock:
            doomed = [k for k, e in self._entries.items() if e.is_expired(now)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def enumerate(self) -> list[CacheEntry]:
        with self._lock:
            return list(self._entries.values())
