"""Pydantic schemas for bills."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
import datetime as dt
from datetime import date, datetime
from decimal import Decimal

from app.models.recurring import BillStatus


class BillCreate(BaseModel):
    series_id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=200)
    merchant: Optional[str] = Field(None, max_length=255)
    amount: Optional[Decimal] = Field(None, ge=0)
    due_date: Optional[date] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class BillResponse(BaseModel):
    id: str
    series_id: Optional[str] = None
    name: str
    merchant: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: str
    due_date: Optional[date] = None
    status: BillStatus
    tx_id: Optional[str] = None
    paid_at: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BillMarkRequest(BaseModel):
    status: BillStatus
    tx_id: Optional[str] = None
    amount: Optional[Decimal] = None
    paid_at: Optional[date] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class BillActionResponse(BaseModel):
    ok: bool = True
    bill: BillResponse


class BillMatchRequest(BaseModel):
    """Explicit match of a ledger transaction to a bill."""
    tx_id: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[dt.date] = None
    series_id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=200)
    merchant: Optional[str] = Field(None, max_length=255)
    account_id: Optional[str] = None
    account_name: Optional[str] = None


class BillMatchResponse(BaseModel):
    ok: bool = True
    bill: BillResponse
    transaction_id: str
