"""
CacheStore port — durable (key -> CacheEntry) storage with expiry metadata.

Every operation is individually atomic and safe to call from concurrent
requests. Nothing here composes operations; see AvailabilityService.
"""

from abc import ABC, abstractmethod
from datetime import date

from slotcache.domain.slots import CacheEntry


class CacheStore(ABC):
    """
    Port: where cached day availability lives.

    Backends (in-memory, SQLite, JSON file) all satisfy the same contract.
    I/O failures surface as StoreError, never as "not found".
    """

    @abstractmethod
    def get(self, key: str) -> CacheEntry | None:
        """
        Return the live entry for key, or None.

        An entry found expired is deleted as a side effect and reported
        as None (lazy expiry).
        """
        ...

    @abstractmethod
    def upsert(self, entry: CacheEntry) -> CacheEntry:
        """
        Replace whatever is stored at entry.key.

        created_at/expires_at are re-stamped from the store clock.
        Returns the stored entry.
        """
        ...

    @abstractmethod
    def delete_by_key(self, key: str) -> int:
        """Delete one entry. Returns 1 if removed, 0 if absent."""
        ...

    @abstractmethod
    def delete_by_date(self, day: date, location: str | None = None) -> int:
        """
        Delete the entry for (day, location), or every entry stored for day
        when location is None. Returns the number removed.
        """
        ...

    @abstractmethod
    def delete_all(self) -> int:
        """Delete every entry. Returns the number removed."""
        ...

    @abstractmethod
    def sweep_expired(self) -> int:
        """Delete every entry with expires_at <= now. Idempotent."""
        ...

    @abstractmethod
    def enumerate(self) -> list[CacheEntry]:
        """All stored entries, expired ones included. Never mutates."""
        ...
