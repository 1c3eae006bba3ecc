"""
SlotResolver — turn a shared slot id back into its booking context.

Deep links carry only a slot id. The resolver scans every live cache
entry for it. A slot is resolvable only while the day that holds it is
cached: "never existed", "day expired" and "day invalidated" all come back
as the same NotFoundError because nothing stored can tell them apart.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from slotcache.domain.cache_store import CacheStore
from slotcache.domain.errors import NotFoundError, ValidationError
from slotcache.domain.slots import Slot, utcnow

log = logging.getLogger(__name__)

MIN_SLOT_ID_LENGTH = 10
_SLOT_ID_CHARS = re.compile(r"^[A-Za-z0-9_-]+$")
DISPLAY_END_BUFFER = timedelta(minutes=30)
DEFAULT_DISPLAY_TIMEZONE = "America/Los_Angeles"


def validate_slot_id(slot_id) -> str:
    """Cheap shape check run before the O(n) scan. Not a security boundary."""
    if not slot_id:
        raise ValidationError("Slot ID is required")
    if not isinstance(slot_id, str):
        raise ValidationError("Invalid slot ID format")
    if len(slot_id) < MIN_SLOT_ID_LENGTH or "-" not in slot_id:
        log.warning("rejected slot id with bad format: %.20s", slot_id)
        raise ValidationError("Invalid slot ID format. Please use a valid booking link.")
    if not _SLOT_ID_CHARS.match(slot_id):
        log.warning("rejected slot id with invalid characters: %.20s", slot_id)
        raise ValidationError("Slot ID contains invalid characters")
    return slot_id


def _clock_time(value: datetime) -> str:
    # "9:00 AM", not "09:00 AM"
    return value.strftime("%I:%M %p").lstrip("0")


def format_time_range(start: datetime, end: datetime, tz: ZoneInfo) -> str:
    """Advertised window: start to end minus the 30 minute buffer, in local time."""
    try:
        local_start = start.astimezone(tz)
        local_end = (end - DISPLAY_END_BUFFER).astimezone(tz)
    except (ValueError, OverflowError, AttributeError, TypeError) as exc:
        log.error("could not format time range: %s", exc)
        return "Time unavailable"
    return f"{_clock_time(local_start)} - {_clock_time(local_end)}"


def format_long_date(day: date) -> str:
    """e.g. "Sunday, March 10, 2024"."""
    return f"{day:%A, %B} {day.day}, {day.year}"


@dataclass
class SlotDetail:
    """A slot plus the day and location of the entry that holds it."""

    slot: Slot
    location: str
    day: date
    available_spaces: int
    display_time: str
    formatted_date: str

    def to_dict(self) -> dict:
        return {
            "slotId": self.slot.slot_id,
            "startTime": self.slot.start_time.isoformat(),
            "endTime": self.slot.end_time.isoformat(),
            "price": self.slot.price,
            "available": self.slot.available,
            "availableSpaces": self.available_spaces,
            "conditions": self.slot.label,
            "weather": self.slot.sky,
            "location": self.location,
            "date": self.day.isoformat(),
            "displayTime": self.display_time,
            "formattedDate": self.formatted_date,
        }


class SlotResolver:

    def __init__(
        self,
        store: CacheStore,
        clock=utcnow,
        display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
    ):
        self._store = store
        self._clock = clock
        self._tz = ZoneInfo(display_timezone)

    def resolve(self, slot_id) -> SlotDetail:
        """
        Find slot_id among live entries.

        Raises ValidationError (bad id), NotFoundError (no live entry holds it)
        or StoreError (the scan itself failed).
        """
        slot_id = validate_slot_id(slot_id)
        now = self._clock()

        for entry in self._store.enumerate():
            if entry.is_expired(now):
                continue
            slot = entry.find_slot(slot_id)
            if slot is None:
                continue
            log.debug("slot %.20s resolved in key=%s", slot_id, entry.key)
            return SlotDetail(
                slot=slot,
                location=entry.location,
                day=entry.day,
                available_spaces=slot.open_spaces,
                display_time=format_time_range(slot.start_time, slot.end_time, self._tz),
                formatted_date=format_long_date(entry.day),
            )

        raise NotFoundError(
            "This booking slot is no longer available or has expired. "
            "Please select a new time slot."
        )
