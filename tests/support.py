"""Shared test helpers: a controllable clock and slot builders."""

from datetime import date, datetime, timedelta, timezone

from slotcache.domain.slots import Slot

PACIFIC_DST = timezone(timedelta(hours=-7))


class FakeClock:
    """Callable clock for stores and resolvers. Time only moves when told."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 9, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_slot(
    slot_id: str = "abc123-xyz",
    day: date = date(2024, 3, 10),
    hour: int = 9,
    open_spaces: int = 3,
    available: bool = True,
    label: str = "Good",
    sky: str | None = "Sunny",
    price: float = 110.0,
) -> Slot:
    start = datetime(day.year, day.month, day.day, hour, 0, tzinfo=PACIFIC_DST)
    return Slot(
        slot_id=slot_id,
        start_time=start,
        end_time=start + timedelta(minutes=90),
        price=price,
        open_spaces=open_spaces,
        available=available,
        label=label,
        sky=sky,
    )
