"""
Cache key derivation.

Key format: {YYYY-MM-DD}_{location lower-cased, whitespace runs -> "_"}
e.g. (2024-03-10, "San Onofre") -> "2024-03-10_san_onofre"

Keys are never parsed back; entries carry their own date and location.
"""

import re
from datetime import date, datetime

from slotcache.domain.errors import ValidationError

_WHITESPACE_RUN = re.compile(r"\s+")
_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_location(location: str) -> str:
    return _WHITESPACE_RUN.sub("_", location.lower())


def cache_key(day: date, location: str) -> str:
    """Deterministic key for a (date, location) pair."""
    return f"{day.isoformat()}_{normalize_location(location)}"


def parse_day(value: date | str) -> date:
    """Accept a date or an ISO "YYYY-MM-DD" string; anything else is a ValidationError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DAY.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"invalid date: {str(value)[:20]!r} (expected YYYY-MM-DD)")
