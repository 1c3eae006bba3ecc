"""Slot decoding from the upstream payload shape, and derived flags."""

from datetime import date, datetime, timedelta, timezone

import pytest

from slotcache.domain.slots import CacheEntry, Slot, parse_open_spaces
from tests.support import FakeClock, make_slot


def _payload(**overrides):
    data = {
        "slotId": "test-slot-1",
        "startTime": "2024-12-01T09:00:00-08:00",
        "endTime": "2024-12-01T10:30:00-08:00",
        "label": "Good",
        "price": 110,
        "openSpaces": "3",
        "available": True,
        "sky": "Sunny",
    }
    data.update(overrides)
    return data


def test_from_payload_reads_upstream_shape():
    slot = Slot.from_payload(_payload())
    assert slot.slot_id == "test-slot-1"
    assert slot.start_time == datetime(2024, 12, 1, 17, 0, tzinfo=timezone.utc)
    assert slot.end_time - slot.start_time == timedelta(minutes=90)
    assert slot.price == 110.0
    assert slot.open_spaces == 3
    assert slot.available is True
    assert slot.sky == "Sunny"


def test_trailing_z_is_utc():
    slot = Slot.from_payload(_payload(startTime="2024-12-01T17:00:00Z"))
    assert slot.start_time.utcoffset() == timedelta(0)


@pytest.mark.parametrize("raw, expected", [("3", 3), (4, 4), (" 2 ", 2), ("", 0), ("lots", 0), (None, 0), ("-1", 0)])
def test_open_spaces_parsing(raw, expected):
    assert parse_open_spaces(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    (True, True), (False, False), ("true", True), ("TRUE", True),
    ("false", False), ("False", False), ("yes", False), (1, False), (None, False),
])
def test_available_flag_parsing(raw, expected):
    assert Slot.from_payload(_payload(available=raw)).available is expected


def test_missing_slot_id_is_rejected():
    data = _payload()
    del data["slotId"]
    with pytest.raises(ValueError):
        Slot.from_payload(data)


def test_negative_price_is_rejected():
    with pytest.raises(ValueError):
        Slot.from_payload(_payload(price=-5))


def test_missing_sky_is_none():
    assert Slot.from_payload(_payload(sky=None)).sky is None


@pytest.mark.parametrize("available, spaces, bookable", [
    (True, 3, True),
    (True, 0, False),
    (False, 3, False),
    (False, 0, False),
])
def test_bookable_needs_flag_and_capacity(available, spaces, bookable):
    assert make_slot(available=available, open_spaces=spaces).is_bookable is bookable


@pytest.mark.parametrize("label, rating", [
    ("Great", "Good"), ("good", "Good"), ("Decent", "Decent"), ("Poor", "Poor"), ("Flat", "Poor"), ("", "Poor"),
])
def test_rating_normalization(label, rating):
    assert make_slot(label=label).rating == rating


def test_payload_round_trip_keeps_untrimmed_end():
    slot = make_slot()
    assert Slot.from_payload(slot.to_payload()).end_time == slot.end_time


def test_entry_expiry_boundary():
    clock = FakeClock()
    entry = CacheEntry.new(date(2024, 3, 10), "Doheny", []).stamped(clock.now)
    assert not entry.is_expired(clock.now + timedelta(hours=24) - timedelta(seconds=1))
    assert entry.is_expired(clock.now + timedelta(hours=24))


def test_entry_find_slot():
    entry = CacheEntry.new(date(2024, 3, 10), "Doheny", [make_slot("slot-one-1"), make_slot("slot-two-2")])
    assert entry.find_slot("slot-two-2").slot_id == "slot-two-2"
    assert entry.find_slot("slot-nope-0") is None
