import asyncio
from datetime import date

from slotcache.domain.errors import UpstreamFetchError
from slotcache.domain.fetcher import AvailabilityFetcher
from slotcache.domain.slots import Slot


class SimulatorAvailabilityFetcher(AvailabilityFetcher):
    """
    In-memory fake for testing. No mocking framework needed.

    Test helpers:
        inject_slots()      — set what fetch() returns for (location, day)
        fail_next()         — make the next N fetches for (location, day) raise
        hold() / release()  — keep fetches in flight until released
        calls               — list of (location, day) tuples, one per fetch()
        in_flight           — number of fetches currently waiting on the gate
    """

    def __init__(self):
        self._slots: dict[tuple[str, date], list[Slot]] = {}
        self._failures: dict[tuple[str, date], int] = {}
        self._gate = asyncio.Event()
        self._gate.set()
        self.calls: list[tuple[str, date]] = []
        self.in_flight = 0

    def inject_slots(self, location: str, day: date, slots: list[Slot]) -> None:
        self._slots[(location, day)] = list(slots)

    def fail_next(self, location: str, day: date, times: int = 1) -> None:
        self._failures[(location, day)] = self._failures.get((location, day), 0) + times

    def hold(self) -> None:
        self._gate.clear()

    def release(self) -> None:
        self._gate.set()

    async def wait_in_flight(self, count: int, max_ticks: int = 1000) -> None:
        """Yield to the loop until at least `count` fetches are parked on the gate."""
        for _ in range(max_ticks):
            if self.in_flight >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} fetches in flight, saw {self.in_flight}")

    def call_count(self, location: str, day: date) -> int:
        return sum(1 for c in self.calls if c == (location, day))

    async def fetch(self, location: str, day: date) -> list[Slot]:
        self.calls.append((location, day))
        # Snapshot now: what the provider "saw" when the request went out.
        snapshot = list(self._slots.get((location, day), []))
        self.in_flight += 1
        try:
            await self._gate.wait()
        finally:
            self.in_flight -= 1

        remaining = self._failures.get((location, day), 0)
        if remaining:
            self._failures[(location, day)] = remaining - 1
            raise UpstreamFetchError(location, day.isoformat(), "simulated upstream failure")
        return snapshot
