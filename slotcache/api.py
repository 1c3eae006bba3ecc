"""
HTTP surface of the availability cache.

GET    /availability             day lookup for the booking UI
GET    /booking-slot/{slot_id}   deep-link slot lookup
POST   /cache/invalidate         payment-confirmation hook
GET    /cache/diagnostics        admin: report           (only when admin is enabled)
DELETE /cache                    admin: clear all
DELETE /cache/expired            admin: clear expired only
DELETE /cache/{date}             admin: clear one date (optionally one location)

Store and upstream failures are logged with detail and answered with a
generic "try again" message.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from slotcache.domain.errors import NotFoundError, StoreError, UpstreamFetchError, ValidationError
from slotcache.domain.keys import parse_day
from slotcache.schemas import (
    ClearResponse,
    DayAvailabilityResponse,
    InvalidationRequest,
    InvalidationResponse,
)
from slotcache.sweeper import run_sweeper, sweep_once
from slotcache.wiring import Components

log = logging.getLogger(__name__)

TRY_AGAIN = "Failed to fetch available slots. Please try again."


def _slot_view(slot) -> dict:
    view = slot.to_payload()
    view["rating"] = slot.rating
    view["bookable"] = slot.is_bookable
    return view


def _components(request: Request) -> Components:
    return request.app.state.components


def _build_public_router() -> APIRouter:
    router = APIRouter()

    @router.get("/availability", response_model=DayAvailabilityResponse)
    async def get_day_availability(
        request: Request,
        date: str | None = None,
        location: str | None = None,
        force_refresh: bool = False,
    ):
        """Slots for one location on one day, served from cache when fresh."""
        if not date or not location:
            raise ValidationError("date and location are required")
        day = parse_day(date)
        slots = await _components(request).service.get_day(day, location, force_refresh)
        return DayAvailabilityResponse(
            date=day.isoformat(),
            location=location,
            slots=[_slot_view(s) for s in slots],
        )

    @router.get("/booking-slot/{slot_id}")
    async def get_booking_slot(request: Request, slot_id: str):
        """Resolve a shared slot id to its full booking context."""
        detail = await asyncio.to_thread(_components(request).resolver.resolve, slot_id)
        return {"success": True, "data": detail.to_dict()}

    @router.post("/cache/invalidate", response_model=InvalidationResponse)
    async def invalidate(request: Request, body: InvalidationRequest):
        """Called after payment confirmation. Always acknowledges."""
        removed = _components(request).trigger.invalidate_for_booking(
            (p.date, p.location) for p in body.pairs
        )
        return InvalidationResponse(success=True, removed=removed)

    return router


def _build_admin_router() -> APIRouter:
    router = APIRouter(prefix="/cache", tags=["cache-admin"])

    @router.get("/diagnostics")
    async def diagnostics(request: Request):
        report = await asyncio.to_thread(_components(request).reporter.report)
        return report.to_dict()

    @router.delete("", response_model=ClearResponse)
    async def clear_all(request: Request):
        return ClearResponse(removed=_components(request).admin.clear_all())

    @router.delete("/expired", response_model=ClearResponse)
    async def clear_expired(request: Request):
        return ClearResponse(removed=_components(request).admin.clear_expired())

    @router.delete("/{date}", response_model=ClearResponse)
    async def clear_date(request: Request, date: str, location: str | None = None):
        admin = _components(request).admin
        day = parse_day(date)
        removed = admin.clear_one(day, location) if location else admin.clear_date(day)
        return ClearResponse(removed=removed)

    return router


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ValidationError)
    async def on_validation(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "kind": "validation", "error": str(exc)},
        )

    @app.exception_handler(NotFoundError)
    async def on_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content={"success": False, "kind": "not_found", "error": str(exc)},
        )

    @app.exception_handler(UpstreamFetchError)
    async def on_upstream(request: Request, exc: UpstreamFetchError):
        log.error("%s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=502,
            content={"success": False, "kind": "upstream_unavailable", "error": TRY_AGAIN},
        )

    @app.exception_handler(StoreError)
    async def on_store(request: Request, exc: StoreError):
        log.error("%s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "kind": "store", "error": "Internal server error. Please try again."},
        )


def create_app(components: Components) -> FastAPI:
    """Build the API around already-constructed components."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweep_once(components.store)
        sweeper = None
        if components.sweep_interval > 0:
            sweeper = asyncio.create_task(run_sweeper(components.store, components.sweep_interval))
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                try:
                    await sweeper
                except asyncio.CancelledError:
                    pass

    app = FastAPI(title="Surf slot availability cache", lifespan=lifespan)
    app.state.components = components
    _register_error_handlers(app)
    app.include_router(_build_public_router())
    if components.admin_enabled:
        app.include_router(_build_admin_router())
    return app
