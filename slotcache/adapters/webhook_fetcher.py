"""
WebhookAvailabilityFetcher — asks the workflow-automation webhook for a day's slots.

The webhook answers with one of:
    [{"output": {"beach": ..., "date": ..., "slots": [...], "meta": {...}}}]
    {"output": {...}}
    {...}                                   (already unwrapped)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from zoneinfo import ZoneInfo

import requests

from slotcache.domain.errors import UpstreamFetchError
from slotcache.domain.fetcher import AvailabilityFetcher
from slotcache.domain.slots import Slot, utcnow

log = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Los_Angeles"

LOCATION_COORDINATES: dict[str, tuple[float, float]] = {
    "Doheny": (33.459869, -117.686949),
    "T-Street": (33.416021, -117.619309),
    "San Onofre": (33.372637, -117.565611),
}
_FALLBACK_LOCATION = "Doheny"


@dataclass
class FetchExchange:
    """The last request/response pair, kept for the diagnostics report."""

    location: str
    day: str
    payload: dict
    status: int | None = None
    elapsed_ms: int = 0
    slot_count: int = 0
    error: str | None = None
    at: datetime = field(default_factory=utcnow)


def build_payload(location: str, day: date, tz: ZoneInfo) -> dict:
    lat, lng = LOCATION_COORDINATES.get(location, LOCATION_COORDINATES[_FALLBACK_LOCATION])
    local_midnight = datetime(day.year, day.month, day.day, tzinfo=tz)
    return {
        "date": day.isoformat(),
        "beach": location,
        "lat": lat,
        "lng": lng,
        "dateTime": local_midnight.isoformat(),
    }


def unwrap_response(raw) -> dict:
    if isinstance(raw, list) and raw and isinstance(raw[0], dict) and "output" in raw[0]:
        raw = raw[0]["output"]
    elif isinstance(raw, dict) and "output" in raw:
        raw = raw["output"]
    if not isinstance(raw, dict) or not isinstance(raw.get("slots"), list):
        raise ValueError("response has no slots list")
    return raw


class WebhookAvailabilityFetcher(AvailabilityFetcher):
    """Adapter: real HTTP client for the availability webhook."""

    def __init__(self, webhook_url: str, timeout: float = 30.0, timezone: str = DEFAULT_TIMEZONE):
        if not webhook_url:
            raise ValueError("webhook_url is required")
        self._url = webhook_url
        self._timeout = timeout
        self._tz = ZoneInfo(timezone)
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self.last_exchange: FetchExchange | None = None

    async def fetch(self, location: str, day: date) -> list[Slot]:
        return await asyncio.to_thread(self._fetch_blocking, location, day)

    def _fetch_blocking(self, location: str, day: date) -> list[Slot]:
        payload = build_payload(location, day, self._tz)
        exchange = FetchExchange(location=location, day=day.isoformat(), payload=payload)
        self.last_exchange = exchange
        started = time.monotonic()
        try:
            resp = self.session.post(self._url, json=payload, timeout=self._timeout)
            exchange.status = resp.status_code
            resp.raise_for_status()
            data = unwrap_response(resp.json())
            slots = [Slot.from_payload(s) for s in data["slots"]]
        except requests.RequestException as exc:
            exchange.error = str(exc)
            raise UpstreamFetchError(location, day.isoformat(), str(exc)) from exc
        except ValueError as exc:
            exchange.error = str(exc)
            raise UpstreamFetchError(location, day.isoformat(), f"bad response: {exc}") from exc
        finally:
            exchange.elapsed_ms = int((time.monotonic() - started) * 1000)

        exchange.slot_count = len(slots)
        log.debug(
            "webhook location=%s day=%s status=%s slots=%d elapsed=%dms",
            location, day, exchange.status, len(slots), exchange.elapsed_ms,
        )
        return slots
