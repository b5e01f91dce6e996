"""
Idempotent repair of links between realized events and ledger transactions.

Each paid bill and paycheck hit is looked up in the ledger through an
ordered list of strategies. The first strategy that returns a transaction
decides the outcome:

- consistent link, or a transaction claimed by another record: nothing to do
- inconsistent link: repair both sides ("linked")
- no transaction at all: create a manual one ("created")

Creation only happens when no strategy finds anything, so re-running the
job never duplicates a transaction.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Callable, List, Optional, Sequence

from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.recurring import Bill, PaycheckHit, BillStatus
from app.models.transaction import Transaction
from app.services.reconciler import (
    BILL_LINK,
    PAYCHECK_LINK,
    LinkKind,
    Record,
    apply_link,
    create_linked_transaction,
    is_transaction_identity,
)

logger = logging.getLogger(__name__)

LookupStrategy = Callable[[Session, str, LinkKind, Record], Optional[Transaction]]

UNCHANGED = "unchanged"
LINKED = "linked"
CREATED = "created"


@dataclass
class BackfillSummary:
    bills_created: int = 0
    bills_linked: int = 0
    paychecks_created: int = 0
    paychecks_linked: int = 0
    failed: int = 0

    def to_dict(self):
        return asdict(self)


def lookup_by_back_reference(db: Session, owner_id: str, kind: LinkKind, record: Record) -> Optional[Transaction]:
    column = getattr(Transaction, kind.back_reference)
    return db.query(Transaction).filter(
        Transaction.owner_id == owner_id,
        column == record.id
    ).order_by(
        case((Transaction.id == record.tx_id, 0), else_=1),
        Transaction.created_at,
        Transaction.id
    ).first()


def lookup_by_identity(db: Session, owner_id: str, kind: LinkKind, record: Record) -> Optional[Transaction]:
    if not is_transaction_identity(record.tx_id):
        return None
    return db.query(Transaction).filter(
        Transaction.owner_id == owner_id,
        Transaction.id == record.tx_id
    ).first()


def lookup_by_external_id(db: Session, owner_id: str, kind: LinkKind, record: Record) -> Optional[Transaction]:
    if not record.tx_id or is_transaction_identity(record.tx_id):
        return None
    return db.query(Transaction).filter(
        Transaction.owner_id == owner_id,
        Transaction.external_id == record.tx_id
    ).first()


def backfill_since(days: Optional[int] = None, today: Optional[date] = None) -> date:
    return (today or date.today()) - timedelta(days=days or settings.backfill_days)


LOOKUP_STRATEGIES: Sequence[LookupStrategy] = (
    lookup_by_back_reference,
    lookup_by_identity,
    lookup_by_external_id,
)


def find_linked_transaction(
    db: Session,
    owner_id: str,
    kind: LinkKind,
    record: Record,
    strategies: Sequence[LookupStrategy] = LOOKUP_STRATEGIES
) -> Optional[Transaction]:
    for strategy in strategies:
        transaction = strategy(db, owner_id, kind, record)
        if transaction is not None:
            return transaction
    return None


def is_consistent(transaction: Transaction, kind: LinkKind, record: Record) -> bool:
    return (
        getattr(transaction, kind.back_reference) == record.id
        and transaction.matched_series_id == record.series_id
        and record.tx_id == transaction.id
    )


def repair_record(
    db: Session,
    owner_id: str,
    kind: LinkKind,
    record: Record,
    account_id: Optional[str] = None
) -> str:
    """Bring one record's linkage to the invariant. Returns what was done."""
    transaction = find_linked_transaction(db, owner_id, kind, record)

    if transaction is not None:
        linked_to = getattr(transaction, kind.back_reference)
        if linked_to is not None and linked_to != record.id:
            # Claimed by another record.
            return UNCHANGED
        if is_consistent(transaction, kind, record):
            return UNCHANGED
        apply_link(transaction, kind, record)
        record.tx_id = transaction.id
        return LINKED

    if isinstance(record, Bill):
        on_date = record.paid_at or record.due_date or date.today()
        description = record.name
        account_name = record.merchant or record.name
        account = account_id
    else:
        on_date = record.date
        description = record.employer_name
        account_name = record.employer_name
        account = account_id or record.account_id

    transaction = create_linked_transaction(
        db, owner_id, kind, record, record.tx_id,
        amount=record.amount,
        on_date=on_date,
        description=description,
        account_id=account,
        account_name=account_name,
    )
    record.tx_id = transaction.id
    return CREATED


def _repair_all(
    db: Session,
    owner_id: str,
    kind: LinkKind,
    records: List[Record],
    account_id: Optional[str],
    summary: BackfillSummary
) -> None:
    prefix = f"{kind.name}s"
    for record in records:
        record_id = record.id
        try:
            outcome = repair_record(db, owner_id, kind, record, account_id)
            if outcome != UNCHANGED:
                db.commit()
        except SQLAlchemyError:
            db.rollback()
            summary.failed += 1
            logger.exception("Backfill failed for %s %s (owner %s)", kind.name, record_id, owner_id)
            continue

        if outcome == CREATED:
            setattr(summary, f"{prefix}_created", getattr(summary, f"{prefix}_created") + 1)
        elif outcome == LINKED:
            setattr(summary, f"{prefix}_linked", getattr(summary, f"{prefix}_linked") + 1)


def backfill_links(
    db: Session,
    owner_id: str,
    days: Optional[int] = None,
    account_id: Optional[str] = None,
    today: Optional[date] = None
) -> BackfillSummary:
    """
    Repair linkage for paid bills and paycheck hits inside the lookback window.

    Safe to re-run: a second pass over the same data reports all zeros. A
    failing record is counted in ``failed`` and does not stop the batch.
    """
    since = backfill_since(days, today)
    summary = BackfillSummary()

    paid_bills = db.query(Bill).filter(
        Bill.owner_id == owner_id,
        Bill.status == BillStatus.paid,
        Bill.paid_at >= since
    ).order_by(Bill.paid_at, Bill.id).all()
    _repair_all(db, owner_id, BILL_LINK, paid_bills, account_id, summary)

    hits = db.query(PaycheckHit).filter(
        PaycheckHit.owner_id == owner_id,
        PaycheckHit.date >= since
    ).order_by(PaycheckHit.date, PaycheckHit.id).all()
    _repair_all(db, owner_id, PAYCHECK_LINK, hits, account_id, summary)

    logger.info("Backfill for owner %s since %s: %s", owner_id, since, summary.to_dict())
    return summary
