"""API endpoints for paycheck hits."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_current_owner
from app.schemas.paycheck import PaycheckMatchRequest, PaycheckMatchResponse, PaycheckHitResponse
from app.services import reconciler

router = APIRouter(prefix="/paychecks", tags=["paychecks"])


@router.post("/match", response_model=PaycheckMatchResponse, status_code=201)
def match_paycheck(
    request: PaycheckMatchRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Record a paycheck hit and link it to its transaction."""
    result = reconciler.match_paycheck(
        db=db,
        owner_id=owner_id,
        tx_id=request.tx_id,
        amount=request.amount,
        received_on=request.date,
        series_id=request.series_id,
        account_id=request.account_id,
        account_name=request.account_name,
        employer_name=request.employer_name,
    )
    return PaycheckMatchResponse(
        ok=True,
        hit=PaycheckHitResponse.model_validate(result.record),
        transaction_id=result.transaction.id,
    )
