"""Pydantic schemas for paycheck hits."""

from pydantic import BaseModel, Field
from typing import Optional
import datetime as dt
from datetime import date, datetime
from decimal import Decimal


class PaycheckHitResponse(BaseModel):
    id: str
    series_id: Optional[str] = None
    amount: Decimal
    date: dt.date
    account_id: Optional[str] = None
    employer_name: Optional[str] = None
    tx_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PaycheckMatchRequest(BaseModel):
    tx_id: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[dt.date] = None
    series_id: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    employer_name: Optional[str] = Field(None, max_length=255)


class PaycheckMatchResponse(BaseModel):
    ok: bool = True
    hit: PaycheckHitResponse
    transaction_id: str
