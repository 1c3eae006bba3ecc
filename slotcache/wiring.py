"""
Assemble the cache layer once at process start.

Everything is built from explicit arguments; components_from_env() is the
only place that reads the environment.
"""

import os
from dataclasses import dataclass

from slotcache.adapters.factory import create_cache_store
from slotcache.diagnostics import CacheAdmin, DiagnosticsReporter
from slotcache.domain.cache_store import CacheStore
from slotcache.domain.fetcher import AvailabilityFetcher
from slotcache.invalidation import InvalidationTrigger
from slotcache.resolver import DEFAULT_DISPLAY_TIMEZONE, SlotResolver
from slotcache.service import AvailabilityService, ServiceConfig
from slotcache.sweeper import DEFAULT_SWEEP_INTERVAL
from slotcache.versions import InvalidationVersions


@dataclass
class Components:
    store: CacheStore
    fetcher: AvailabilityFetcher
    versions: InvalidationVersions
    service: AvailabilityService
    trigger: InvalidationTrigger
    resolver: SlotResolver
    reporter: DiagnosticsReporter
    admin: CacheAdmin
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL
    admin_enabled: bool = True


def build_components(
    store: CacheStore,
    fetcher: AvailabilityFetcher,
    display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
    coalesce: bool = True,
    discard_stale_fetches: bool = True,
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
    admin_enabled: bool = True,
) -> Components:
    """Wire every component around one store and one shared version registry."""
    versions = InvalidationVersions()
    service = AvailabilityService(ServiceConfig(
        store=store,
        fetcher=fetcher,
        versions=versions,
        coalesce=coalesce,
        discard_stale_fetches=discard_stale_fetches,
    ))
    return Components(
        store=store,
        fetcher=fetcher,
        versions=versions,
        service=service,
        trigger=InvalidationTrigger(store, versions),
        resolver=SlotResolver(store, display_timezone=display_timezone),
        reporter=DiagnosticsReporter(store, fetcher),
        admin=CacheAdmin(store, versions),
        sweep_interval=sweep_interval,
        admin_enabled=admin_enabled,
    )


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def components_from_env() -> Components:
    """
    Production wiring.

    BOOKING_WEBHOOK_URL is required; the other variables are listed in
    scripts/run.py.
    """
    from slotcache.adapters.webhook_fetcher import DEFAULT_TIMEZONE, WebhookAvailabilityFetcher

    webhook_url = os.environ.get("BOOKING_WEBHOOK_URL")
    if not webhook_url:
        raise RuntimeError("environment variable 'BOOKING_WEBHOOK_URL' is not set")

    timezone = os.environ.get("DISPLAY_TIMEZONE", DEFAULT_TIMEZONE)
    fetcher = WebhookAvailabilityFetcher(
        webhook_url=webhook_url,
        timeout=float(os.environ.get("BOOKING_WEBHOOK_TIMEOUT", "30")),
        timezone=timezone,
    )
    return build_components(
        store=create_cache_store(),
        fetcher=fetcher,
        display_timezone=timezone,
        sweep_interval=float(os.environ.get("SLOT_CACHE_SWEEP_INTERVAL", str(DEFAULT_SWEEP_INTERVAL))),
        admin_enabled=_env_flag("SLOT_CACHE_ADMIN_ENABLED", False),
    )
