"""
Error taxonomy for the availability cache.

ValidationError and NotFoundError are user-facing outcomes.
StoreError and UpstreamFetchError are operational faults: they are logged
with context and replaced by a generic message at the HTTP edge.
"""


class SlotCacheError(Exception):
    """Base class for every error raised by the cache layer."""


class ValidationError(SlotCacheError):
    """Malformed caller input. Never retried."""


class NotFoundError(SlotCacheError):
    """Slot or entry absent (possibly because its day expired or was cleared)."""


class StoreError(SlotCacheError):
    """Durable storage failed on read, write or delete."""

    def __init__(self, operation: str, key: str | None = None, detail: str = ""):
        self.operation = operation
        self.key = key
        message = f"store {operation} failed"
        if key:
            message += f" key={key}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class UpstreamFetchError(SlotCacheError):
    """The external availability provider could not produce slots."""

    def __init__(self, location: str, day: str, detail: str = ""):
        self.location = location
        self.day = day
        message = f"availability fetch failed for {location} on {day}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
