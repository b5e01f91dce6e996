"""Pydantic schemas for recurring series."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any, Dict
from datetime import date, datetime
from decimal import Decimal

from app.models.recurring import SeriesKind, Cadence


def _lower(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class SeriesUpsert(BaseModel):
    """Create (no id) or update (id given) a recurring series."""
    id: Optional[str] = None
    kind: Optional[SeriesKind] = None
    name: Optional[str] = Field(None, max_length=200)
    merchant: Optional[str] = Field(None, max_length=255)
    cadence: Optional[Cadence] = None
    day_of_month: Optional[int] = None
    weekday: Optional[int] = None
    amount_hint: Optional[Decimal] = None
    active: Optional[bool] = None
    next_due: Optional[date] = None

    @field_validator("kind", "cadence", mode="before")
    @classmethod
    def normalize_enum(cls, v):
        return _lower(v)


class SeriesResponse(BaseModel):
    id: str
    kind: SeriesKind
    name: str
    merchant: Optional[str] = None
    cadence: Cadence
    day_of_month: Optional[int] = None
    weekday: Optional[int] = None
    amount_hint: Optional[Decimal] = None
    active: bool
    last_seen: Optional[date] = None
    next_due: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SnoozeRequest(BaseModel):
    """Shift a date forward; days outside 1..365 are clamped."""
    days: int = 7


class SeriesSnoozeResponse(BaseModel):
    ok: bool = True
    series: SeriesResponse


class DeleteResponse(BaseModel):
    ok: bool = True


class DetectRequest(BaseModel):
    lookback_days: Optional[int] = Field(None, ge=1, le=3650)


class DetectionResult(BaseModel):
    """One series written from a detector result."""
    key: str
    series_id: str
    kind: SeriesKind
    cadence: Cadence
    next_due: Optional[date] = None
    count: Optional[int] = None


class DetectionResponse(BaseModel):
    ok: bool = True
    results: List[DetectionResult]
    skipped: int = 0
    detector: Dict[str, Any] = {}
