"""
Reconciliation of ledger transactions against bills and paychecks.

The reconciler is the only writer of the cross references between a
Bill/PaycheckHit (``tx_id``) and a ledger Transaction (``matched_*``).
After any successful match both sides point at each other.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional, Union, Any

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import InvalidInputError
from app.models.recurring import Bill, PaycheckHit, RecurringSeries, BillStatus, OPEN_BILL_STATUSES
from app.models.transaction import Transaction, TransactionType, TransactionSource
from app.services.cadence import next_occurrence
from app.services.series_service import find_owned_series

logger = logging.getLogger(__name__)

MAX_TX_ID_LENGTH = 128
MATCH_CONFIDENCE = 1.0

Record = Union[Bill, PaycheckHit]


@dataclass(frozen=True)
class LinkKind:
    """How a record kind maps onto the ledger."""
    name: str
    back_reference: str
    transaction_type: TransactionType
    category: str
    description: str


BILL_LINK = LinkKind("bill", "matched_bill_id", TransactionType.expense, "Bills", "Bill payment")
PAYCHECK_LINK = LinkKind("paycheck", "matched_paycheck_id", TransactionType.income, "Income", "Paycheck")


@dataclass
class MatchResult:
    record: Record
    transaction: Transaction


def validate_tx_id(tx_id: Any) -> str:
    if not isinstance(tx_id, str) or not tx_id.strip():
        raise InvalidInputError("tx_id required")
    tx_id = tx_id.strip()
    if len(tx_id) > MAX_TX_ID_LENGTH:
        raise InvalidInputError("tx_id too long")
    return tx_id


def is_transaction_identity(value: Optional[str]) -> bool:
    """True when the reference is a ledger transaction id rather than an external one."""
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def positive_amount(amount: Any) -> Optional[Decimal]:
    """Return the amount as a Decimal when it is a finite number > 0, else None."""
    if amount is None or isinstance(amount, bool):
        return None
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def find_transaction(db: Session, owner_id: str, tx_ref: str) -> Optional[Transaction]:
    """Look a transaction up by exact identity, or by external-origin id."""
    query = db.query(Transaction).filter(Transaction.owner_id == owner_id)
    if is_transaction_identity(tx_ref):
        return query.filter(Transaction.id == tx_ref).first()
    return query.filter(Transaction.external_id == tx_ref).first()


def apply_link(transaction: Transaction, kind: LinkKind, record: Record) -> None:
    setattr(transaction, kind.back_reference, record.id)
    transaction.matched_series_id = record.series_id
    transaction.match_confidence = MATCH_CONFIDENCE


def create_linked_transaction(
    db: Session,
    owner_id: str,
    kind: LinkKind,
    record: Record,
    tx_ref: Optional[str],
    amount: Optional[Decimal],
    on_date: date,
    description: Optional[str] = None,
    account_id: Optional[str] = None,
    account_name: Optional[str] = None,
) -> Transaction:
    """Create a manual ledger row already linked to ``record``."""
    reuse_identity = is_transaction_identity(tx_ref) and db.get(Transaction, tx_ref) is None
    transaction = Transaction(
        id=tx_ref if reuse_identity else str(uuid.uuid4()),
        owner_id=owner_id,
        type=kind.transaction_type,
        category=kind.category,
        amount=max(amount or Decimal("0"), Decimal("0")),
        date=on_date,
        description=description or kind.description,
        source=TransactionSource.manual,
        account_id=account_id or None,
        account_name=account_name or None,
        external_id=None if is_transaction_identity(tx_ref) else tx_ref,
    )
    apply_link(transaction, kind, record)
    db.add(transaction)
    return transaction


def link_transaction(
    db: Session,
    owner_id: str,
    kind: LinkKind,
    record: Record,
    tx_ref: str,
    amount: Optional[Decimal],
    on_date: date,
    description: Optional[str] = None,
    account_id: Optional[str] = None,
    account_name: Optional[str] = None,
) -> Transaction:
    """Link ``record`` to the referenced transaction, creating a manual one if none exists."""
    transaction = find_transaction(db, owner_id, tx_ref)
    if transaction:
        apply_link(transaction, kind, record)
    else:
        transaction = create_linked_transaction(
            db, owner_id, kind, record, tx_ref, amount, on_date,
            description=description, account_id=account_id, account_name=account_name,
        )
    record.tx_id = transaction.id
    return transaction


def release_transaction_link(db: Session, owner_id: str, kind: LinkKind, record: Record) -> None:
    """Clear back-references pointing at ``record`` and its own tx_id."""
    column = getattr(Transaction, kind.back_reference)
    for transaction in db.query(Transaction).filter(
        Transaction.owner_id == owner_id,
        column == record.id
    ).all():
        setattr(transaction, kind.back_reference, None)
        transaction.matched_series_id = None
        transaction.match_confidence = None
    record.tx_id = None


def find_open_bill(db: Session, owner_id: str, series_id: str, paid_on: date) -> Optional[Bill]:
    """
    First due/predicted bill of the series whose due date is within the
    tolerance window of ``paid_on``. First match wins, not nearest in time.
    """
    tolerance = timedelta(days=settings.match_tolerance_days)
    return db.query(Bill).filter(
        Bill.owner_id == owner_id,
        Bill.series_id == series_id,
        Bill.status.in_(OPEN_BILL_STATUSES),
        Bill.due_date >= paid_on - tolerance,
        Bill.due_date <= paid_on + tolerance,
    ).order_by(Bill.created_at, Bill.id).first()


def record_series_hit(series: RecurringSeries, on_date: date) -> None:
    """Advance last_seen and re-project next_due from the matched date."""
    if series.last_seen is not None and on_date < series.last_seen:
        # An older payment arriving late does not rewind the series.
        return

    series.last_seen = on_date
    projected = next_occurrence(on_date, series.cadence, series.day_of_month)
    if projected is not None:
        series.next_due = projected
    elif series.next_due is not None and series.next_due < on_date:
        series.next_due = None


def match_bill(
    db: Session,
    owner_id: str,
    tx_id: Any,
    amount: Any = None,
    paid_on: Optional[date] = None,
    series_id: Optional[str] = None,
    name: Optional[str] = None,
    merchant: Optional[str] = None,
    account_id: Optional[str] = None,
    account_name: Optional[str] = None,
) -> MatchResult:
    """
    Mark a bill paid by a ledger transaction.

    Absorbs an open bill of the series within the tolerance window when one
    exists, otherwise records a new paid bill.
    """
    tx_ref = validate_tx_id(tx_id)
    paid_on = paid_on or date.today()
    amt = positive_amount(amount)

    series = find_owned_series(db, owner_id, series_id)

    bill = find_open_bill(db, owner_id, series.id, paid_on) if series else None

    if bill:
        bill.status = BillStatus.paid
        bill.paid_at = paid_on
        bill.tx_id = tx_ref
        if amt is not None:
            bill.amount = amt
    else:
        bill = Bill(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            series_id=series.id if series else None,
            name=(series.name if series else None) or name or "Bill",
            merchant=(series.merchant if series else None) or merchant,
            amount=amt,
            currency=settings.default_currency,
            due_date=paid_on,
            status=BillStatus.paid,
            paid_at=paid_on,
            tx_id=tx_ref,
        )
        db.add(bill)

    if series:
        record_series_hit(series, paid_on)

    transaction = link_transaction(
        db, owner_id, BILL_LINK, bill, tx_ref,
        amount=bill.amount if bill.amount is not None else amt,
        on_date=paid_on,
        description=bill.name,
        account_id=account_id,
        account_name=account_name,
    )

    db.commit()
    db.refresh(bill)
    db.refresh(transaction)
    logger.info("Matched bill %s to transaction %s (owner %s)", bill.id, transaction.id, owner_id)
    return MatchResult(record=bill, transaction=transaction)


def match_paycheck(
    db: Session,
    owner_id: str,
    tx_id: Any,
    amount: Any,
    received_on: Optional[date] = None,
    series_id: Optional[str] = None,
    account_id: Optional[str] = None,
    account_name: Optional[str] = None,
    employer_name: Optional[str] = None,
) -> MatchResult:
    """Record a realized paycheck and link it to its ledger transaction."""
    tx_ref = validate_tx_id(tx_id)
    amt = positive_amount(amount)
    if amt is None:
        raise InvalidInputError("positive amount required")
    received_on = received_on or date.today()

    series = find_owned_series(db, owner_id, series_id)

    hit = PaycheckHit(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        series_id=series.id if series else None,
        amount=amt,
        date=received_on,
        account_id=account_id or None,
        employer_name=employer_name or (series.merchant or series.name if series else None),
        tx_id=tx_ref,
    )
    db.add(hit)

    if series:
        record_series_hit(series, received_on)

    transaction = link_transaction(
        db, owner_id, PAYCHECK_LINK, hit, tx_ref,
        amount=amt,
        on_date=received_on,
        description=hit.employer_name,
        account_id=account_id,
        account_name=account_name,
    )

    db.commit()
    db.refresh(hit)
    db.refresh(transaction)
    logger.info("Matched paycheck %s to transaction %s (owner %s)", hit.id, transaction.id, owner_id)
    return MatchResult(record=hit, transaction=transaction)
