"""API endpoints for bills."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from app.dependencies import get_db, get_current_owner
from app.schemas.bill import (
    BillCreate,
    BillResponse,
    BillMarkRequest,
    BillActionResponse,
    BillMatchRequest,
    BillMatchResponse,
)
from app.schemas.recurring import SnoozeRequest
from app.services import bill_service, reconciler

router = APIRouter(prefix="/bills", tags=["bills"])


@router.post("", response_model=BillResponse)
def create_bill(
    data: BillCreate,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Create a bill in status due."""
    bill = bill_service.create_bill(db, owner_id, data.model_dump())
    return BillResponse.model_validate(bill)


@router.get("", response_model=List[BillResponse])
def list_bills(
    start: Optional[date] = Query(None, alias="from"),
    end: Optional[date] = Query(None, alias="to"),
    status: Optional[str] = Query(None, description="Comma separated statuses"),
    q: Optional[str] = None,
    account_id: Optional[str] = None,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """List bills by due date range, status, search term and account."""
    statuses = bill_service.parse_status_csv(status)
    bills = bill_service.list_bills(
        db, owner_id,
        start=start,
        end=end,
        statuses=statuses,
        q=q,
        account_id=account_id,
    )
    return [BillResponse.model_validate(b) for b in bills]


@router.post("/match", response_model=BillMatchResponse, status_code=201)
def match_bill(
    request: BillMatchRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Mark a bill paid by a transaction, creating the bill or transaction when missing."""
    result = reconciler.match_bill(
        db=db,
        owner_id=owner_id,
        tx_id=request.tx_id,
        amount=request.amount,
        paid_on=request.date,
        series_id=request.series_id,
        name=request.name,
        merchant=request.merchant,
        account_id=request.account_id,
        account_name=request.account_name,
    )
    return BillMatchResponse(
        ok=True,
        bill=BillResponse.model_validate(result.record),
        transaction_id=result.transaction.id,
    )


@router.post("/{bill_id}/mark", response_model=BillActionResponse)
def mark_bill(
    bill_id: str,
    request: BillMarkRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Set a bill paid, skipped or due."""
    bill = bill_service.mark_bill(
        db, owner_id, bill_id,
        status=request.status,
        tx_id=request.tx_id,
        amount=request.amount,
        paid_at=request.paid_at,
    )
    return BillActionResponse(ok=True, bill=BillResponse.model_validate(bill))


@router.post("/{bill_id}/snooze", response_model=BillActionResponse)
def snooze_bill(
    bill_id: str,
    request: SnoozeRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Push a bill's due date forward."""
    bill = bill_service.snooze_bill(db, owner_id, bill_id, request.days)
    return BillActionResponse(ok=True, bill=BillResponse.model_validate(bill))
