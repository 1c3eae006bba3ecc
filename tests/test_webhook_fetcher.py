"""
WebhookAvailabilityFetcher against a fake requests session.

The session is swapped on the instance, so no network is touched.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest
import requests

from slotcache.adapters.webhook_fetcher import (
    LOCATION_COORDINATES,
    WebhookAvailabilityFetcher,
    build_payload,
    unwrap_response,
)
from slotcache.domain.errors import UpstreamFetchError

LA = ZoneInfo("America/Los_Angeles")
DAY = date(2025, 6, 10)

SLOT_PAYLOAD = {
    "slotId": "abc123-xyz",
    "startTime": "2025-06-10T16:00:00Z",
    "endTime": "2025-06-10T17:30:00Z",
    "label": "Good",
    "price": 110,
    "openSpaces": "3",
    "available": True,
    "sky": "Sunny",
}


class FakeResponse:

    def __init__(self, status_code=200, body=None, json_error=None):
        self.status_code = status_code
        self._body = body
        self._json_error = json_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._body


class FakeSession:
    """Records posts and replays a canned response (or raises)."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts: list[dict] = []

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _fetcher(session) -> WebhookAvailabilityFetcher:
    fetcher = WebhookAvailabilityFetcher("https://hooks.example.test/availability", timeout=5)
    fetcher.session = session
    return fetcher


# ---------------------------------------------------------------------------
# Request payload
# ---------------------------------------------------------------------------


def test_payload_for_known_location():
    payload = build_payload("San Onofre", DAY, LA)
    assert payload == {
        "date": "2025-06-10",
        "beach": "San Onofre",
        "lat": 33.372637,
        "lng": -117.565611,
        "dateTime": "2025-06-10T00:00:00-07:00",
    }


def test_payload_uses_standard_offset_in_winter():
    assert build_payload("Doheny", date(2025, 1, 15), LA)["dateTime"] == "2025-01-15T00:00:00-08:00"


def test_unknown_location_falls_back_to_default_coordinates():
    payload = build_payload("Malibu", DAY, LA)
    assert payload["beach"] == "Malibu"
    assert (payload["lat"], payload["lng"]) == LOCATION_COORDINATES["Doheny"]


# ---------------------------------------------------------------------------
# Response unwrapping
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("raw", [
    [{"output": {"slots": [SLOT_PAYLOAD]}}],
    {"output": {"slots": [SLOT_PAYLOAD]}},
    {"slots": [SLOT_PAYLOAD]},
])
def test_unwrap_accepts_every_envelope(raw):
    assert unwrap_response(raw)["slots"] == [SLOT_PAYLOAD]


@pytest.mark.parametrize("raw", [
    [],
    {"output": {"message": "no slots"}},
    {"slots": "none"},
    "oops",
    None,
])
def test_unwrap_rejects_bodies_without_slots(raw):
    with pytest.raises(ValueError):
        unwrap_response(raw)


# ---------------------------------------------------------------------------
# fetch()
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_decodes_slots_and_records_exchange():
    session = FakeSession(FakeResponse(body=[{"output": {"beach": "Doheny", "slots": [SLOT_PAYLOAD]}}]))
    fetcher = _fetcher(session)

    slots = await fetcher.fetch("Doheny", DAY)

    assert len(slots) == 1
    assert slots[0].slot_id == "abc123-xyz"
    assert slots[0].open_spaces == 3
    assert slots[0].start_time == datetime(2025, 6, 10, 16, 0, tzinfo=timezone.utc)

    post = session.posts[0]
    assert post["url"] == "https://hooks.example.test/availability"
    assert post["timeout"] == 5
    assert post["json"]["beach"] == "Doheny"

    exchange = fetcher.last_exchange
    assert exchange.status == 200
    assert exchange.slot_count == 1
    assert exchange.error is None


@pytest.mark.asyncio
async def test_empty_slot_list_is_a_valid_answer():
    fetcher = _fetcher(FakeSession(FakeResponse(body={"slots": []})))
    assert await fetcher.fetch("Doheny", DAY) == []


@pytest.mark.asyncio
async def test_http_error_status_becomes_upstream_error():
    fetcher = _fetcher(FakeSession(FakeResponse(status_code=500, body={"error": "boom"})))

    with pytest.raises(UpstreamFetchError):
        await fetcher.fetch("Doheny", DAY)
    assert fetcher.last_exchange.status == 500
    assert "500" in fetcher.last_exchange.error


@pytest.mark.asyncio
async def test_transport_error_becomes_upstream_error():
    fetcher = _fetcher(FakeSession(error=requests.ConnectionError("connection refused")))

    with pytest.raises(UpstreamFetchError):
        await fetcher.fetch("Doheny", DAY)
    assert fetcher.last_exchange.status is None
    assert "connection refused" in fetcher.last_exchange.error


@pytest.mark.asyncio
async def test_timeout_becomes_upstream_error():
    fetcher = _fetcher(FakeSession(error=requests.Timeout("read timed out")))
    with pytest.raises(UpstreamFetchError):
        await fetcher.fetch("Doheny", DAY)


@pytest.mark.asyncio
async def test_non_json_body_becomes_upstream_error():
    fetcher = _fetcher(FakeSession(FakeResponse(json_error=ValueError("Expecting value"))))
    with pytest.raises(UpstreamFetchError):
        await fetcher.fetch("Doheny", DAY)


@pytest.mark.asyncio
async def test_malformed_slot_fails_whole_fetch():
    bad = dict(SLOT_PAYLOAD)
    del bad["startTime"]
    fetcher = _fetcher(FakeSession(FakeResponse(body={"slots": [SLOT_PAYLOAD, bad]})))

    with pytest.raises(UpstreamFetchError):
        await fetcher.fetch("Doheny", DAY)
    assert fetcher.last_exchange.slot_count == 0


def test_url_is_required():
    with pytest.raises(ValueError):
        WebhookAvailabilityFetcher("")
