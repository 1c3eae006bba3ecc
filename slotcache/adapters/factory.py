import os
from datetime import timedelta

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.slots import CACHE_TTL


def _ttl_from_env() -> timedelta:
    raw = os.environ.get("SLOT_CACHE_TTL_HOURS")
    return timedelta(hours=float(raw)) if raw else CACHE_TTL


def create_cache_store(backend: str | None = None) -> CacheStore:
    """
    Factory: create the right CacheStore backend based on config.

    The backend can be passed explicitly or read from the
    SLOT_CACHE_BACKEND env var. Defaults to "sqlite".
    """
    backend = backend or os.environ.get("SLOT_CACHE_BACKEND", "sqlite")
    ttl = _ttl_from_env()

    if backend == "sqlite":
        from .sqlite_cache_store import SqliteCacheStore

        db_path = os.environ.get("SLOT_CACHE_DB_PATH", "data/slot_cache.db")
        if db_path != ":memory:" and os.path.dirname(db_path):
            os.makedirs(os.path.dirname(db_path), exist_ok=True)
        return SqliteCacheStore(db_path=db_path, ttl=ttl)

    if backend == "json":
        from .json_cache_store import JsonFileCacheStore

        return JsonFileCacheStore(
            path=os.environ.get("SLOT_CACHE_JSON_PATH", "data/slot_cache.json"),
            ttl=ttl,
        )

    if backend == "memory":
        from .memory_cache_store import InMemoryCacheStore

        return InMemoryCacheStore(ttl=ttl)

    raise ValueError(f"Unknown cache backend: {backend!r}")
