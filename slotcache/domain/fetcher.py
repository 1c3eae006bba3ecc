"""
AvailabilityFetcher port — the upstream source of truth for slot availability.
"""

from abc import ABC, abstractmethod
from datetime import date

from slotcache.domain.slots import Slot


class AvailabilityFetcher(ABC):
    """
    Port: ask the provider which lesson slots exist for a location on a day.

    The service depends ONLY on this interface. Implementations raise
    UpstreamFetchError on any failure and never return partial data.
    """

    @abstractmethod
    async def fetch(self, location: str, day: date) -> list[Slot]:
        """Return the day's slots in upstream order."""
        ...
