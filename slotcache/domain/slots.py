"""
Value types cached by the availability layer.

A CacheEntry holds one upstream answer for one (date, location): the slot
list exactly as received, plus the write time and a fixed expiry.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone

from slotcache.domain.keys import cache_key

CACHE_TTL = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(raw: str) -> datetime:
    """Parse an ISO 8601 timestamp; a trailing "Z" means UTC."""
    value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def parse_open_spaces(raw) -> int:
    """Upstream sends a number-as-string. Missing, malformed or negative -> 0."""
    try:
        spaces = int(str(raw).strip())
    except (TypeError, ValueError):
        return 0
    return max(spaces, 0)


def parse_flag(raw) -> bool:
    """Only a real boolean or the string "true" counts as set. "false", 1, None -> False."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() == "true"
    return False


@dataclass
class Slot:
    """One bookable lesson window as reported upstream."""

    slot_id: str
    start_time: datetime
    end_time: datetime      # untrimmed; display code subtracts the 30 min buffer
    price: float
    open_spaces: int
    available: bool
    label: str              # "Great", "Good", "Decent", ...
    sky: str | None = None  # "Sunny", "Partly Cloudy", ... or unknown

    @property
    def is_bookable(self) -> bool:
        # The flag and the capacity are independent upstream; both must agree.
        return self.available and self.open_spaces > 0

    @property
    def rating(self) -> str:
        """Collapse the upstream label into Good / Decent / Poor."""
        label = (self.label or "").strip().lower()
        if label in ("great", "good"):
            return "Good"
        if label == "decent":
            return "Decent"
        return "Poor"

    @classmethod
    def from_payload(cls, data: dict) -> "Slot":
        """Build a Slot from the upstream camelCase shape. Raises ValueError if unusable."""
        try:
            slot_id = str(data["slotId"])
            start_time = parse_instant(data["startTime"])
            end_time = parse_instant(data["endTime"])
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"slot payload missing or invalid field: {exc}") from exc
        try:
            price = float(data.get("price") or 0)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"slot {slot_id[:20]} has invalid price") from exc
        if price < 0:
            raise ValueError(f"slot {slot_id[:20]} has negative price")
        return cls(
            slot_id=slot_id,
            start_time=start_time,
            end_time=end_time,
            price=price,
            open_spaces=parse_open_spaces(data.get("openSpaces")),
            available=parse_flag(data.get("available")),
            label=str(data.get("label") or ""),
            sky=data.get("sky") or None,
        )

    def to_payload(self) -> dict:
        return {
            "slotId": self.slot_id,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "label": self.label,
            "price": self.price,
            "openSpaces": str(self.open_spaces),
            "available": self.available,
            "sky": self.sky,
        }


@dataclass
class CacheEntry:
    """Cached availability for one (date, location). Replaced wholesale, never merged."""

    key: str
    location: str
    day: date
    slots: list[Slot] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    expires_at: datetime = field(default_factory=lambda: utcnow() + CACHE_TTL)

    @classmethod
    def new(cls, day: date, location: str, slots: list[Slot]) -> "CacheEntry":
        return cls(key=cache_key(day, location), location=location, day=day, slots=list(slots))

    def stamped(self, now: datetime, ttl: timedelta = CACHE_TTL) -> "CacheEntry":
        """Copy with created_at=now and expires_at=now+ttl, as done on every write."""
        return replace(self, slots=list(self.slots), created_at=now, expires_at=now + ttl)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def age_hours(self, now: datetime) -> float:
        return (now - self.created_at).total_seconds() / 3600

    def find_slot(self, slot_id: str) -> Slot | None:
        for slot in self.slots:
            if slot.slot_id == slot_id:
                return slot
        return None

    # -- serialization -------------------------------------------------------

    def to_record(self) -> dict:
        return {
            "key": self.key,
            "location": self.location,
            "date": self.day.isoformat(),
            "slots": [s.to_payload() for s in self.slots],
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict) -> "CacheEntry":
        return cls(
            key=record["key"],
            location=record["location"],
            day=date.fromisoformat(record["date"]),
            slots=[Slot.from_payload(s) for s in record.get("slots", [])],
            created_at=parse_instant(record["created_at"]),
            expires_at=parse_instant(record["expires_at"]),
        )
