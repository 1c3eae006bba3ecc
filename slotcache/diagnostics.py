"""
Operational view of the cache, plus the explicit admin clear actions.

The report is read-only: it lists expired entries instead of removing them.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.slots import utcnow
from slotcache.versions import InvalidationVersions

log = logging.getLogger(__name__)


@dataclass
class EntrySummary:
    key: str
    location: str
    date: str
    is_valid: bool
    age_hours: float
    slot_count: int


@dataclass
class CacheReport:
    total_entries: int = 0
    valid_entries: int = 0
    expired_entries: int = 0
    entries: list[EntrySummary] = field(default_factory=list)
    last_fetch: dict | None = None

    def to_dict(self) -> dict:
        """camelCase wire shape, matching the slot-lookup response."""
        return {
            "totalEntries": self.total_entries,
            "validEntries": self.valid_entries,
            "expiredEntries": self.expired_entries,
            "perEntry": [
                {
                    "key": e.key,
                    "location": e.location,
                    "date": e.date,
                    "isValid": e.is_valid,
                    "ageHours": e.age_hours,
                    "slotCount": e.slot_count,
                }
                for e in self.entries
            ],
            "lastFetch": self.last_fetch,
        }


class DiagnosticsReporter:

    def __init__(self, store: CacheStore, fetcher=None, clock=utcnow):
        self._store = store
        self._fetcher = fetcher
        self._clock = clock

    def report(self) -> CacheReport:
        now = self._clock()
        report = CacheReport()
        for entry in self._store.enumerate():
            is_valid = not entry.is_expired(now)
            if is_valid:
                report.valid_entries += 1
            else:
                report.expired_entries += 1
            report.entries.append(EntrySummary(
                key=entry.key,
                location=entry.location,
                date=entry.day.isoformat(),
                is_valid=is_valid,
                age_hours=round(entry.age_hours(now), 1),
                slot_count=len(entry.slots),
            ))
        report.total_entries = len(report.entries)
        report.last_fetch = self._last_fetch()
        return report

    def _last_fetch(self) -> dict | None:
        exchange = getattr(self._fetcher, "last_exchange", None)
        if exchange is None:
            return None
        return {
            "location": exchange.location,
            "date": exchange.day,
            "status": exchange.status,
            "elapsedMs": exchange.elapsed_ms,
            "slotCount": exchange.slot_count,
            "error": exchange.error,
            "at": exchange.at.isoformat(),
        }


class CacheAdmin:
    """Manual clears for operators, separate from TTL expiry and payment invalidation."""

    def __init__(self, store: CacheStore, versions: InvalidationVersions | None = None):
        self._store = store
        self._versions = versions or InvalidationVersions()

    def clear_all(self) -> int:
        self._versions.bump_all()
        removed = self._store.delete_all()
        log.info("admin clear all: removed=%d", removed)
        return removed

    def clear_expired(self) -> int:
        removed = self._store.sweep_expired()
        log.info("admin clear expired: removed=%d", removed)
        return removed

    def clear_one(self, day: date, location: str) -> int:
        self._versions.bump_key(day, location)
        removed = self._store.delete_by_date(day, location)
        log.info("admin clear date=%s location=%s: removed=%d", day, location, removed)
        return removed

    def clear_date(self, day: date) -> int:
        self._versions.bump_date(day)
        removed = self._store.delete_by_date(day)
        log.info("admin clear date=%s (all locations): removed=%d", day, removed)
        return removed
