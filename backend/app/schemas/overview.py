"""
Overview and backfill schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date
from decimal import Decimal

from app.schemas.bill import BillResponse
from app.schemas.paycheck import PaycheckHitResponse


class OverviewSummary(BaseModel):
    horizon_days: int
    bill_count: int
    total_due: Decimal
    next_due_date: Optional[date] = None
    last_paycheck: Optional[PaycheckHitResponse] = None


class OverviewResponse(BaseModel):
    summary: OverviewSummary
    bills: List[BillResponse]
    recent_paychecks: List[PaycheckHitResponse]


class BackfillRequest(BaseModel):
    days: Optional[int] = Field(None, ge=1, le=3650)
    account_id: Optional[str] = None


class BackfillCounts(BaseModel):
    bills_created: int = 0
    bills_linked: int = 0
    paychecks_created: int = 0
    paychecks_linked: int = 0
    failed: int = 0


class BackfillResponse(BaseModel):
    ok: bool = True
    since: date
    summary: BackfillCounts
