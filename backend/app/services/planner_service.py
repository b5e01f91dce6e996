"""Read-only forward view of upcoming bills and recent paychecks."""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.recurring import Bill, PaycheckHit, OPEN_BILL_STATUSES
from app.services.series_service import clamp


@dataclass
class Overview:
    horizon_days: int
    bills: List[Bill]
    recent_paychecks: List[PaycheckHit]
    total_due: Decimal
    next_due_date: Optional[date]
    last_paycheck: Optional[PaycheckHit]


def clamp_horizon(horizon_days: Optional[int]) -> int:
    if horizon_days is None:
        return settings.overview_horizon_days
    return clamp(horizon_days, 1, settings.overview_max_horizon_days)


def build_overview(
    db: Session,
    owner_id: str,
    horizon_days: Optional[int] = None,
    today: Optional[date] = None
) -> Overview:
    """
    Bills still open and due within the horizon (soonest first), paychecks
    from the trailing window (newest first), and summary figures.

    Reads stored values only; nothing is recomputed or written.
    """
    horizon = clamp_horizon(horizon_days)
    today = today or date.today()
    end = today + timedelta(days=horizon)

    bills = db.query(Bill).filter(
        Bill.owner_id == owner_id,
        Bill.status.in_(OPEN_BILL_STATUSES),
        Bill.due_date.isnot(None),
        Bill.due_date <= end
    ).order_by(Bill.due_date, Bill.created_at).all()

    recent_cutoff = today - timedelta(days=settings.paycheck_lookback_days)
    recent_paychecks = db.query(PaycheckHit).filter(
        PaycheckHit.owner_id == owner_id,
        PaycheckHit.date >= recent_cutoff
    ).order_by(PaycheckHit.date.desc(), PaycheckHit.created_at.desc()).all()

    upcoming = [b for b in bills if b.due_date >= today] or bills
    total_due = sum((b.amount for b in bills if b.amount is not None), Decimal("0"))

    return Overview(
        horizon_days=horizon,
        bills=bills,
        recent_paychecks=recent_paychecks,
        total_due=total_due,
        next_due_date=upcoming[0].due_date if upcoming else None,
        last_paycheck=recent_paychecks[0] if recent_paychecks else None,
    )
