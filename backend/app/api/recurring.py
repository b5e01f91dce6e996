"""API endpoints for detection, overview and link backfill."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.dependencies import get_db, get_current_owner
from app.schemas.recurring import DetectRequest, DetectionResponse
from app.schemas.bill import BillResponse
from app.schemas.paycheck import PaycheckHitResponse
from app.schemas.overview import (
    OverviewSummary,
    OverviewResponse,
    BackfillRequest,
    BackfillCounts,
    BackfillResponse,
)
from app.services import detection_service, planner_service, backfill_service

router = APIRouter(tags=["recurring"])


def get_detector() -> detection_service.Detector:
    """Detector used by /detect. Overridable for tests and alternative miners."""
    return detection_service.ai_detector


@router.post("/detect", response_model=DetectionResponse)
async def detect_recurring(
    request: Optional[DetectRequest] = None,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db),
    detector: detection_service.Detector = Depends(get_detector)
):
    """Run recurring detection over the owner's recent transactions and save the series found."""
    lookback_days = request.lookback_days if request else None
    return await detection_service.run_detection(
        db, owner_id, lookback_days=lookback_days, detector=detector
    )


@router.get("/overview", response_model=OverviewResponse)
def get_overview(
    horizon_days: Optional[int] = Query(None, description="Clamped to 1..120"),
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Upcoming open bills and recent paychecks."""
    overview = planner_service.build_overview(db, owner_id, horizon_days=horizon_days)

    return OverviewResponse(
        summary=OverviewSummary(
            horizon_days=overview.horizon_days,
            bill_count=len(overview.bills),
            total_due=overview.total_due,
            next_due_date=overview.next_due_date,
            last_paycheck=PaycheckHitResponse.model_validate(overview.last_paycheck) if overview.last_paycheck else None,
        ),
        bills=[BillResponse.model_validate(b) for b in overview.bills],
        recent_paychecks=[PaycheckHitResponse.model_validate(p) for p in overview.recent_paychecks],
    )


@router.post("/backfill-tx", response_model=BackfillResponse)
def backfill_transactions(
    request: Optional[BackfillRequest] = None,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Create or repair ledger links for paid bills and paycheck hits."""
    days = request.days if request else None
    account_id = request.account_id if request else None

    summary = backfill_service.backfill_links(db, owner_id, days=days, account_id=account_id)

    return BackfillResponse(
        ok=True,
        since=backfill_service.backfill_since(days),
        summary=BackfillCounts(**summary.to_dict()),
    )
