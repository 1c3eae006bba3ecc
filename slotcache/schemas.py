"""
Pydantic schemas for the cache HTTP API.
"""

from pydantic import BaseModel, Field


class InvalidationPair(BaseModel):
    """One (date, location) touched by a confirmed booking."""
    date: str
    location: str | None = Field(default=None, description="Omit to clear every location for the date")


class InvalidationRequest(BaseModel):
    pairs: list[InvalidationPair]


class InvalidationResponse(BaseModel):
    success: bool = True
    removed: int = 0


class ClearResponse(BaseModel):
    removed: int


class DayAvailabilityResponse(BaseModel):
    date: str
    location: str
    slots: list[dict]
