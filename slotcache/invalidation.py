"""
InvalidationTrigger — called after a payment is confirmed.

Deletes the cached days a booking touched so the next read fetches the
decremented availability. A missed invalidation heals itself at TTL expiry,
so nothing here may fail the payment workflow: every problem is logged
and skipped.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.errors import ValidationError
from slotcache.domain.keys import parse_day
from slotcache.versions import InvalidationVersions

log = logging.getLogger(__name__)

# (date, location); location None means every location of that date.
TouchedPair = tuple[date | str, str | None]


def touched_pairs(bookings: Iterable[Mapping]) -> list[tuple[date, str]]:
    """
    Distinct (date, location) pairs from booking line items, first-seen order.

    Items carry "date" plus "beach" or "location". Items missing either are
    skipped.
    """
    pairs: list[tuple[date, str]] = []
    seen: set[tuple[date, str]] = set()
    for item in bookings:
        location = item.get("location") or item.get("beach")
        raw_day = item.get("date")
        if not location or not raw_day:
            continue
        try:
            pair = (parse_day(raw_day), location)
        except ValidationError as exc:
            log.warning("booking item skipped: %s", exc)
            continue
        if pair not in seen:
            seen.add(pair)
            pairs.append(pair)
    return pairs


class InvalidationTrigger:

    def __init__(self, store: CacheStore, versions: InvalidationVersions | None = None):
        self._store = store
        self._versions = versions or InvalidationVersions()

    def invalidate_for_booking(self, pairs: Iterable[TouchedPair]) -> int:
        """
        Delete the entries for each (date, location). Idempotent; never raises.

        Returns the number of entries actually removed.
        """
        removed = 0
        for pair in pairs:
            try:
                raw_day, location = pair
                day = parse_day(raw_day)
                # Bump before deleting so a fetch that lands in between is discarded.
                self._versions.bump(day, location)
                count = self._store.delete_by_date(day, location)
            except Exception as exc:
                log.error("invalidation skipped for %r: %s", pair, exc)
                continue
            removed += count
            log.info(
                "invalidated date=%s location=%s removed=%d",
                day, location if location is not None else "*", count,
            )
        return removed
