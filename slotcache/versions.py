"""
Invalidation versions — detect a cache clear that happened while a fetch was out.

A fetch snapshots the versions for its (date, location) before calling
upstream. If the snapshot no longer matches when the fetch returns, some
invalidation ran in between and the result must not be written back.

Three scopes are tracked because clears come in three widths:
one key, every location of a date, and everything.
"""

import threading
from dataclasses import dataclass
from datetime import date

from slotcache.domain.keys import cache_key


@dataclass(frozen=True)
class VersionStamp:
    epoch: int
    date_version: int
    key_version: int


class InvalidationVersions:

    def __init__(self):
        self._lock = threading.Lock()
        self._epoch = 0
        self._by_date: dict[date, int] = {}
        self._by_key: dict[str, int] = {}

    def stamp(self, day: date, location: str) -> VersionStamp:
        key = cache_key(day, location)
        with self._lock:
            return VersionStamp(self._epoch, self._by_date.get(day, 0), self._by_key.get(key, 0))

    def is_current(self, day: date, location: str, stamp: VersionStamp) -> bool:
        return self.stamp(day, location) == stamp

    def bump_key(self, day: date, location: str) -> None:
        key = cache_key(day, location)
        with self._lock:
            self._by_key[key] = self._by_key.get(key, 0) + 1

    def bump_date(self, day: date) -> None:
        with self._lock:
            self._by_date[day] = self._by_date.get(day, 0) + 1

    def bump_all(self) -> None:
        with self._lock:
            self._epoch += 1

    def bump(self, day: date, location: str | None = None) -> None:
        """Bump the scope a DeleteByDate(day, location) call covers."""
        if location is None:
            self.bump_date(day)
        else:
            self.bump_key(day, location)
