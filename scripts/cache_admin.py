#!/usr/bin/env python3
"""
Operator CLI — inspect and clear the slot availability cache.

Usage (from project root):
    python scripts/cache_admin.py                          # report
    python scripts/cache_admin.py report
    python scripts/cache_admin.py clear-expired
    python scripts/cache_admin.py clear-all
    python scripts/cache_admin.py clear 2024-03-10         # every location that day
    python scripts/cache_admin.py clear 2024-03-10 "San Onofre"
    python scripts/cache_admin.py sweep                    # same as clear-expired, quiet

Uses the backend selected by SLOT_CACHE_BACKEND (see scripts/run.py).
"""

import os
import sys

# Allow running as `python scripts/cache_admin.py` from project root.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from slotcache.adapters.factory import create_cache_store
from slotcache.diagnostics import CacheAdmin, DiagnosticsReporter
from slotcache.domain.errors import SlotCacheError
from slotcache.domain.keys import parse_day
from slotcache.sweeper import sweep_once


def print_report(reporter: DiagnosticsReporter) -> None:
    report = reporter.report()
    print(
        f"\n{report.total_entries} entr{'y' if report.total_entries == 1 else 'ies'}"
        f"  ({report.valid_entries} valid, {report.expired_entries} expired)\n"
    )
    if not report.entries:
        return
    print(f"{'Key':<32}  {'Location':<14}  {'Date':<10}  {'Valid':<5}  {'Age(h)':>6}  {'Slots':>5}")
    print("-" * 84)
    for e in report.entries:
        print(
            f"{e.key:<32}  {e.location:<14}  {e.date:<10}  "
            f"{'yes' if e.is_valid else 'no':<5}  {e.age_hours:>6.1f}  {e.slot_count:>5}"
        )
    print()


def main(argv: list[str]) -> int:
    store = create_cache_store()
    admin = CacheAdmin(store)
    command = argv[0] if argv else "report"

    try:
        if command == "report":
            print_report(DiagnosticsReporter(store))
        elif command == "clear-all":
            print(f"Removed {admin.clear_all()} entries.")
        elif command == "clear-expired":
            print(f"Removed {admin.clear_expired()} expired entries.")
        elif command == "sweep":
            sweep_once(store)
        elif command == "clear" and len(argv) in (2, 3):
            day = parse_day(argv[1])
            removed = admin.clear_one(day, argv[2]) if len(argv) == 3 else admin.clear_date(day)
            print(f"Removed {removed} entries.")
        else:
            print(__doc__)
            return 2
    except SlotCacheError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
