"""
JSON-file adapter for CacheStore — the local-device backend.

The whole cache is one JSON document ({key: record}) rewritten on every
change, the way the browser-storage cache kept a single blob. Writes go
to a temp file first and are renamed into place.

Readers report an unparseable file as StoreError. Writers replace it, so a
corrupt file heals on the next upsert or clear.
"""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from datetime import date, datetime, timedelta
from pathlib import Path

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.errors import StoreError
from slotcache.domain.keys import cache_key
from slotcache.domain.slots import CACHE_TTL, CacheEntry, utcnow

log = logging.getLogger(__name__)


class JsonFileCacheStore(CacheStore):

    def __init__(
        self,
        path: str | Path = "slot_cache.json",
        clock: Callable[[], datetime] = utcnow,
        ttl: timedelta = CACHE_TTL,
    ):
        self._path = Path(path)
        self._clock = clock
        self._ttl = ttl
        self._lock = threading.Lock()

    # -- file I/O ------------------------------------------------------------

    def _load(
        self,
        operation: str,
        key: str | None = None,
        rebuild: bool = False,
    ) -> tuple[dict[str, CacheEntry], bool]:
        """
        Read the document. Returns (entries, dirty).

        Unreadable records are skipped with a warning and mark the result
        dirty. An unparseable document raises StoreError, unless rebuild is
        set: writers start over from an empty document so the file heals on
        the next save.
        """
        if not self._path.exists():
            return {}, False
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreError(operation, key, str(exc)) from exc
        try:
            raw = json.loads(text)
            if not isinstance(raw, dict):
                raise ValueError(f"expected an object, got {type(raw).__name__}")
        except ValueError as exc:
            if not rebuild:
                raise StoreError(operation, key, f"corrupt cache file: {exc}") from exc
            log.warning("operation=%s corrupt cache file %s, rebuilding: %s", operation, self._path, exc)
            return {}, True

        entries: dict[str, CacheEntry] = {}
        dirty = False
        for k, record in raw.items():
            try:
                entries[k] = CacheEntry.from_record(record)
            except (ValueError, KeyError, AttributeError, TypeError) as exc:
                log.warning("key=%.40s corrupt cache record skipped: %s", k, exc)
                dirty = True
        return entries, dirty

    def _save(self, entries: dict[str, CacheEntry], operation: str, key: str | None = None) -> None:
        payload = {k: e.to_record() for k, e in entries.items()}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".slot_cache.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f)
                os.replace(tmp, self._path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as exc:
            raise StoreError(operation, key, str(exc)) from exc

    def _remove_where(self, operation: str, predicate, key: str | None = None) -> int:
        with self._lock:
            entries, dirty = self._load(operation, key, rebuild=True)
            doomed = [k for k, e in entries.items() if predicate(k, e)]
            for k in doomed:
                del entries[k]
            if doomed or dirty:
                self._save(entries, operation, key)
            return len(doomed)

    # -- CacheStore ----------------------------------------------------------

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entries, _ = self._load("get", key)
            entry = entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del entries[key]
                self._save(entries, "get", key)
                return None
            return entry

    def upsert(self, entry: CacheEntry) -> CacheEntry:
        stored = entry.stamped(self._clock(), self._ttl)
        with self._lock:
            entries, _ = self._load("upsert", stored.key, rebuild=True)
            entries[stored.key] = stored
            self._save(entries, "upsert", stored.key)
        return stored

    def delete_by_key(self, key: str) -> int:
        return self._remove_where("delete", lambda k, e: k == key, key)

    def delete_by_date(self, day: date, location: str | None = None) -> int:
        if location is not None:
            return self.delete_by_key(cache_key(day, location))
        return self._remove_where("delete_by_date", lambda k, e: e.day == day)

    def delete_all(self) -> int:
        with self._lock:
            if not self._path.exists():
                return 0
            entries, _ = self._load("delete_all", rebuild=True)
            self._save({}, "delete_all")
            return len(entries)

    def sweep_expired(self) -> int:
        now = self._clock()
        return self._remove_where("sweep", lambda k, e: e.is_expired(now))

    def enumerate(self) -> list[CacheEntry]:
        with self._lock:
            entries, _ = self._load("enumerate")
            return list(entries.values())
