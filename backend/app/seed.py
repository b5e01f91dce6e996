"""
Seed script for demo recurring data.

Creates monthly bills (past months paid and linked, the current month due or
paid) and a biweekly payroll for one owner. Series named ``MOCK:*`` are
replaced on every run.
"""

import logging
import sys
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models import RecurringSeries, Bill, PaycheckHit, Transaction, TransactionSource, SeriesKind, Cadence, BillStatus
from app.services.cadence import add_months
from app.services.backfill_service import backfill_links

MOCK_PREFIX = "MOCK:"

MOCK_BILLS = [
    {"name": "Rent", "merchant": "landlord", "day_of_month": 1, "amount": "1800.00", "kind": SeriesKind.bill},
    {"name": "Netflix", "merchant": "netflix", "day_of_month": 10, "amount": "15.49", "kind": SeriesKind.subscription},
    {"name": "Utilities", "merchant": "utility", "day_of_month": 5, "amount": "120.00", "kind": SeriesKind.bill},
    {"name": "Internet", "merchant": "isp", "day_of_month": 7, "amount": "70.00", "kind": SeriesKind.bill},
    {"name": "Gym", "merchant": "gym", "day_of_month": 12, "amount": "35.00", "kind": SeriesKind.subscription},
    {"name": "Spotify", "merchant": "spotify", "day_of_month": 14, "amount": "9.99", "kind": SeriesKind.subscription},
]

MOCK_PAYROLL = {"name": "Payroll", "merchant": "acme-corp", "employer": "Acme Corp", "amount": "1850.00"}


def clear_mock_data(db: Session, owner_id: str) -> None:
    """Remove earlier MOCK:* series and everything attached to them."""
    mock_ids = [
        s.id for s in db.query(RecurringSeries).filter(
            RecurringSeries.owner_id == owner_id,
            RecurringSeries.name.like(f"{MOCK_PREFIX}%")
        ).all()
    ]
    if not mock_ids:
        return
    db.query(Transaction).filter(
        Transaction.owner_id == owner_id,
        Transaction.source == TransactionSource.manual,
        Transaction.matched_series_id.in_(mock_ids)
    ).delete(synchronize_session=False)
    db.query(Bill).filter(Bill.series_id.in_(mock_ids)).delete(synchronize_session=False)
    db.query(PaycheckHit).filter(PaycheckHit.series_id.in_(mock_ids)).delete(synchronize_session=False)
    db.query(RecurringSeries).filter(RecurringSeries.id.in_(mock_ids)).delete(synchronize_session=False)
    db.flush()


def seed_recurring(db: Session, owner_id: str, months: int = 7, start_at: Optional[date] = None) -> Dict[str, Any]:
    """Seed mock bills and paychecks for ``owner_id`` and link them to the ledger."""
    today = start_at or date.today()
    month_start = today.replace(day=1)

    clear_mock_data(db, owner_id)

    bills_created = 0
    for meta in MOCK_BILLS:
        series = RecurringSeries(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            kind=meta["kind"],
            name=f"{MOCK_PREFIX}{meta['name']}",
            merchant=meta["merchant"],
            cadence=Cadence.monthly,
            day_of_month=meta["day_of_month"],
            amount_hint=Decimal(meta["amount"]),
            active=True,
        )
        db.add(series)

        for i in range(months, 0, -1):
            due = add_months(month_start, -i, anchor_day=meta["day_of_month"])
            db.add(Bill(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                series_id=series.id,
                name=meta["name"],
                merchant=meta["merchant"],
                amount=Decimal(meta["amount"]),
                due_date=due,
                status=BillStatus.paid,
                paid_at=due,
                tx_id=f"mock-tx-{series.id}-{due.isoformat()}",
            ))
            bills_created += 1

        this_due = month_start.replace(day=meta["day_of_month"])
        in_past = this_due <= today
        db.add(Bill(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            series_id=series.id,
            name=meta["name"],
            merchant=meta["merchant"],
            amount=Decimal(meta["amount"]),
            due_date=this_due,
            status=BillStatus.paid if in_past else BillStatus.due,
            paid_at=this_due if in_past else None,
            tx_id=f"mock-tx-{series.id}-{this_due.isoformat()}" if in_past else None,
        ))
        bills_created += 1

        series.last_seen = this_due if in_past else add_months(this_due, -1)
        series.next_due = add_months(this_due, 1) if in_past else this_due

    payroll = RecurringSeries(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        kind=SeriesKind.paycheck,
        name=f"{MOCK_PREFIX}{MOCK_PAYROLL['name']}",
        merchant=MOCK_PAYROLL["merchant"],
        cadence=Cadence.biweekly,
        amount_hint=Decimal(MOCK_PAYROLL["amount"]),
        active=True,
    )
    db.add(payroll)

    # Biweekly Friday paychecks starting roughly `months` months ago
    pay_day = today - timedelta(days=months * 30)
    while pay_day.weekday() != 4:
        pay_day += timedelta(days=1)

    paychecks_created = 0
    last_pay_day = None
    while pay_day <= today:
        db.add(PaycheckHit(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            series_id=payroll.id,
            amount=Decimal(MOCK_PAYROLL["amount"]),
            date=pay_day,
            employer_name=MOCK_PAYROLL["employer"],
            tx_id=f"mock-payroll-{payroll.id}-{pay_day.isoformat()}",
        ))
        paychecks_created += 1
        last_pay_day = pay_day
        pay_day += timedelta(days=14)

    payroll.last_seen = last_pay_day
    payroll.next_due = (last_pay_day or today) + timedelta(days=14)

    db.commit()

    summary = backfill_links(db, owner_id, days=months * 31 + 31, today=today)

    return {
        "series_created": len(MOCK_BILLS) + 1,
        "bills_created": bills_created,
        "paychecks_created": paychecks_created,
        "transactions": summary.to_dict(),
    }


def main(owner_id: str) -> None:
    db = SessionLocal()

    try:
        result = seed_recurring(db, owner_id)
        print(f"Seeded recurring data for {owner_id}: {result}")
    except Exception as e:
        print(f"Error seeding recurring data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main(sys.argv[1] if len(sys.argv) > 1 else "demo-user")
