"""Service for explicit bill creation, listing, marking and snoozing."""

import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Dict, Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import InvalidInputError, NotFoundError
from app.models.recurring import Bill, BillStatus
from app.models.transaction import Transaction
from app.services.series_service import get_series, clamp_snooze_days, parse_enum
from app.services.reconciler import (
    BILL_LINK,
    link_transaction,
    release_transaction_link,
    positive_amount,
    validate_tx_id,
)

logger = logging.getLogger(__name__)


def parse_status_csv(raw: Optional[str]) -> List[BillStatus]:
    """Parse "due,predicted" into statuses; unknown values are rejected."""
    if not raw:
        return []
    return [
        parse_enum(BillStatus, part, "status")
        for part in raw.split(",")
        if part.strip()
    ]


def get_bill(db: Session, owner_id: str, bill_id: str) -> Bill:
    bill = db.query(Bill).filter(Bill.id == bill_id, Bill.owner_id == owner_id).first()
    if not bill:
        raise NotFoundError("Bill not found")
    return bill


def create_bill(db: Session, owner_id: str, data: Dict[str, Any]) -> Bill:
    """Create a bill in status due, optionally attached to one of the owner's series."""
    series = get_series(db, owner_id, data["series_id"]) if data.get("series_id") else None

    amount = data.get("amount")
    if amount is not None and Decimal(str(amount)) < 0:
        raise InvalidInputError("amount must be >= 0")

    name = (data.get("name") or "").strip() or (series.name if series else None) or "Bill"

    bill = Bill(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        series_id=series.id if series else None,
        name=name,
        merchant=data.get("merchant") or (series.merchant if series else None),
        amount=Decimal(str(amount)) if amount is not None else None,
        currency=(data.get("currency") or settings.default_currency).upper(),
        due_date=data.get("due_date") or date.today(),
        status=BillStatus.due,
    )
    db.add(bill)
    db.commit()
    db.refresh(bill)
    return bill


def list_bills(
    db: Session,
    owner_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    statuses: Optional[List[BillStatus]] = None,
    q: Optional[str] = None,
    account_id: Optional[str] = None
) -> List[Bill]:
    """List bills by due date range, status, free text and linked account."""
    query = db.query(Bill).filter(Bill.owner_id == owner_id)

    if start:
        query = query.filter(Bill.due_date >= start)
    if end:
        query = query.filter(Bill.due_date <= end)
    if statuses:
        query = query.filter(Bill.status.in_(statuses))
    if q and q.strip():
        search_term = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Bill.name.ilike(search_term),
                Bill.merchant.ilike(search_term)
            )
        )
    if account_id:
        query = query.join(
            Transaction,
            (Transaction.id == Bill.tx_id) & (Transaction.owner_id == Bill.owner_id)
        ).filter(Transaction.account_id == account_id)

    return query.order_by(Bill.due_date, Bill.created_at).all()


def mark_bill(
    db: Session,
    owner_id: str,
    bill_id: str,
    status: BillStatus,
    tx_id: Optional[str] = None,
    amount: Any = None,
    paid_at: Optional[date] = None
) -> Bill:
    """
    Set a bill paid, skipped or back to due.

    Paying with a tx_id links the transaction through the reconciler. Leaving
    paid releases any transaction link.
    """
    status = parse_enum(BillStatus, status, "status")
    if status == BillStatus.predicted:
        raise InvalidInputError("status must be paid, skipped or due")
    if status == BillStatus.paid and tx_id is not None:
        tx_id = validate_tx_id(tx_id)

    bill = get_bill(db, owner_id, bill_id)

    if status == BillStatus.paid:
        bill.status = BillStatus.paid
        bill.paid_at = paid_at or bill.paid_at or date.today()
        amt = positive_amount(amount)
        if amt is not None:
            bill.amount = amt
        if tx_id:
            release_transaction_link(db, owner_id, BILL_LINK, bill)
            link_transaction(
                db, owner_id, BILL_LINK, bill, tx_id,
                amount=bill.amount,
                on_date=bill.paid_at,
                description=bill.name,
            )
    else:
        release_transaction_link(db, owner_id, BILL_LINK, bill)
        bill.status = status
        bill.paid_at = None

    db.commit()
    db.refresh(bill)
    logger.info("Marked bill %s as %s (owner %s)", bill.id, bill.status.value, owner_id)
    return bill


def snooze_bill(
    db: Session,
    owner_id: str,
    bill_id: str,
    days: int,
    today: Optional[date] = None
) -> Bill:
    """Push a bill's due date forward from its current value (or today when unset)."""
    bill = get_bill(db, owner_id, bill_id)
    if bill.status == BillStatus.paid:
        raise InvalidInputError("paid bills cannot be snoozed")

    base = bill.due_date or today or date.today()
    bill.due_date = base + timedelta(days=clamp_snooze_days(days))

    db.commit()
    db.refresh(bill)
    return bill
