"""
SQLite adapter for CacheStore — the shared durable backend.

Use ":memory:" for tests, a file path for production.
"""

import json
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date, datetime, timedelta

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.errors import StoreError
from slotcache.domain.keys import cache_key
from slotcache.domain.slots import CACHE_TTL, CacheEntry, utcnow

_SCHEMA = """
CREATE TABLE IF NOT EXISTS time_slots_cache (
    cache_key   TEXT PRIMARY KEY,
    location    TEXT NOT NULL,
    day         TEXT NOT NULL,
    slots       TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL,
    expires_ts  REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_time_slots_cache_day ON time_slots_cache(day);
CREATE INDEX IF NOT EXISTS idx_time_slots_cache_expires ON time_slots_cache(expires_ts);
"""


class SqliteCacheStore(CacheStore):

    def __init__(
        self,
        db_path: str = "slot_cache.db",
        clock: Callable[[], datetime] = utcnow,
        ttl: timedelta = CACHE_TTL,
    ):
        self._clock = clock
        self._ttl = ttl
        self._lock = threading.Lock()
        with self._guard("open"):
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)

    @contextmanager
    def _guard(self, operation: str, key: str | None = None) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            raise StoreError(operation, key, str(exc)) from exc
        except (ValueError, KeyError) as exc:
            raise StoreError(operation, key, f"corrupt row: {exc}") from exc

    # -- read ----------------------------------------------------------------

    def get(self, key: str) -> CacheEntry | None:
        with self._lock, self._guard("get", key):
            row = self._conn.execute(
                "SELECT * FROM time_slots_cache WHERE cache_key = ?", (key,)
            ).fetchone()
            if not row:
                return None
            entry = self._row_to_entry(row)
            if entry.is_expired(self._clock()):
                self._conn.execute("DELETE FROM time_slots_cache WHERE cache_key = ?", (key,))
                self._conn.commit()
                return None
            return entry

    def enumerate(self) -> list[CacheEntry]:
        with self._lock, self._guard("enumerate"):
            rows = self._conn.execute(
                "SELECT * FROM time_slots_cache ORDER BY day, cache_key"
            ).fetchall()
            return [self._row_to_entry(r) for r in rows]

    # -- write ---------------------------------------------------------------

    def upsert(self, entry: CacheEntry) -> CacheEntry:
        stored = entry.stamped(self._clock(), self._ttl)
        with self._lock, self._guard("upsert", stored.key):
            self._conn.execute(
                "INSERT OR REPLACE INTO time_slots_cache"
                " (cache_key, location, day, slots, created_at, expires_at, expires_ts)"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                (stored.key, stored.location, stored.day.isoformat(),
                 json.dumps([s.to_payload() for s in stored.slots]),
                 stored.created_at.isoformat(), stored.expires_at.isoformat(),
                 stored.expires_at.timestamp()),
            )
            self._conn.commit()
        return stored

    # -- delete --------------------------------------------------------------

    def delete_by_key(self, key: str) -> int:
        return self._delete("delete", "WHERE cache_key = ?", (key,), key)

    def delete_by_date(self, day: date, location: str | None = None) -> int:
        if location is not None:
            return self.delete_by_key(cache_key(day, location))
        return self._delete("delete_by_date", "WHERE day = ?", (day.isoformat(),))

    def delete_all(self) -> int:
        return self._delete("delete_all", "", ())

    def sweep_expired(self) -> int:
        now_ts = self._clock().timestamp()
        return self._delete("sweep", "WHERE expires_ts <= ?", (now_ts,))

    def _delete(self, operation: str, where: str, params: tuple, key: str | None = None) -> int:
        with self._lock, self._guard(operation, key):
            cur = self._conn.execute(f"DELETE FROM time_slots_cache {where}", params)
            self._conn.commit()
            return cur.rowcount

    @staticmethod
    def _row_to_entry(row) -> CacheEntry:
        return CacheEntry.from_record({
            "key": row["cache_key"],
            "location": row["location"],
            "date": row["day"],
            "slots": json.loads(row["slots"]),
            "created_at": row["created_at"],
            "expires_at": row["expires_at"],
        })

    def close(self) -> None:
        self._conn.close()
