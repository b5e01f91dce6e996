"""
Boundary to the recurring-pattern detector.

The detector receives an owner id, a read-only :class:`TransactionQuery` and
a lookback window, and returns a mapping with a ``results`` list. This module
only normalizes those results into series (and predicted bill) writes; how
the detector scores patterns is its own business.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.ai.client import get_ai_client
from app.ai.prompts import RECURRING_DETECTION_SYSTEM, RECURRING_DETECTION_USER
from app.config import settings
from app.exceptions import DependencyError, InvalidInputError
from app.models.recurring import RecurringSeries, Bill, SeriesKind, Cadence, BillStatus, OPEN_BILL_STATUSES
from app.models.transaction import Transaction, TransactionType
from app.services.cadence import next_occurrence
from app.services.series_service import clamp, parse_enum

logger = logging.getLogger(__name__)

MIN_TRANSACTIONS = 5

Detector = Callable[[str, "TransactionQuery", int], Awaitable[Dict[str, Any]]]


class TransactionQuery:
    """Read-only, owner-scoped view of the ledger handed to detectors."""

    def __init__(self, db: Session, owner_id: str):
        self._db = db
        self._owner_id = owner_id

    def since(self, start: date, transaction_type: Optional[TransactionType] = None) -> List[Transaction]:
        query = self._db.query(Transaction).filter(
            Transaction.owner_id == self._owner_id,
            Transaction.date >= start
        )
        if transaction_type:
            query = query.filter(Transaction.type == transaction_type)
        return query.order_by(Transaction.date.desc()).all()

    def by_ids(self, ids: Iterable[str]) -> List[Transaction]:
        ids = [str(i) for i in ids]
        if not ids:
            return []
        return self._db.query(Transaction).filter(
            Transaction.owner_id == self._owner_id,
            Transaction.id.in_(ids)
        ).all()


@dataclass
class DetectedSeries:
    name: str
    kind: SeriesKind
    cadence: Cadence
    last_seen: date
    merchant: Optional[str] = None
    amount: Optional[Decimal] = None
    day_of_month: Optional[int] = None
    count: Optional[int] = None

    @property
    def key(self) -> str:
        return f"{self.name}|{self.kind.value}"


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidInputError(f"invalid last_seen: {value}")


def normalize_candidate(raw: Dict[str, Any]) -> DetectedSeries:
    """Turn one detector result into a validated candidate series."""
    if not isinstance(raw, dict):
        raise InvalidInputError("detector result must be an object")

    name = str(raw.get("name") or "").strip()
    if not name:
        raise InvalidInputError("detector result has no name")

    if raw.get("kind"):
        kind = parse_enum(SeriesKind, raw["kind"], "kind")
    else:
        kind = SeriesKind.paycheck if str(raw.get("type", "")).lower() == "income" else SeriesKind.bill

    cadence = parse_enum(Cadence, raw.get("cadence") or Cadence.unknown, "cadence")

    if raw.get("last_seen") is None:
        raise InvalidInputError("detector result has no last_seen")
    last_seen = _parse_date(raw["last_seen"])

    amount = None
    if raw.get("amount") is not None:
        try:
            amount = abs(Decimal(str(raw["amount"])))
        except InvalidOperation:
            raise InvalidInputError(f"invalid amount: {raw['amount']}")

    day_of_month = raw.get("day_of_month")
    return DetectedSeries(
        name=name,
        kind=kind,
        cadence=cadence,
        last_seen=last_seen,
        merchant=(str(raw["merchant"]).strip() or None) if raw.get("merchant") else None,
        amount=amount,
        day_of_month=clamp(day_of_month, 1, 28) if day_of_month is not None else None,
        count=int(raw["count"]) if raw.get("count") is not None else None,
    )


def upsert_detected_series(db: Session, owner_id: str, candidate: DetectedSeries) -> RecurringSeries:
    """Create or refresh the owner's series named by the candidate."""
    series = db.query(RecurringSeries).filter(
        RecurringSeries.owner_id == owner_id,
        RecurringSeries.kind == candidate.kind,
        RecurringSeries.name == candidate.name
    ).first()

    if not series:
        series = RecurringSeries(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            kind=candidate.kind,
            name=candidate.name,
        )
        db.add(series)

    series.merchant = candidate.merchant or series.merchant
    series.cadence = candidate.cadence
    series.active = True
    if candidate.amount is not None:
        series.amount_hint = candidate.amount
    if candidate.day_of_month is not None:
        series.day_of_month = candidate.day_of_month

    if series.last_seen is None or candidate.last_seen >= series.last_seen:
        series.last_seen = candidate.last_seen
        series.next_due = next_occurrence(candidate.last_seen, series.cadence, series.day_of_month)

    return series


def upsert_predicted_bill(db: Session, owner_id: str, series: RecurringSeries) -> Optional[Bill]:
    """Make sure an open bill exists around the series' next due date."""
    if series.kind == SeriesKind.paycheck or series.next_due is None:
        return None

    window = timedelta(days=settings.detection_bill_window_days)
    existing = db.query(Bill).filter(
        Bill.owner_id == owner_id,
        Bill.series_id == series.id,
        Bill.status.in_(OPEN_BILL_STATUSES),
        Bill.due_date >= series.next_due - window,
        Bill.due_date <= series.next_due + window
    ).first()

    if existing:
        if series.amount_hint is not None:
            existing.amount = series.amount_hint
        return existing

    bill = Bill(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        series_id=series.id,
        name=series.name,
        merchant=series.merchant,
        amount=series.amount_hint,
        currency=settings.default_currency,
        due_date=series.next_due,
        status=BillStatus.predicted,
    )
    db.add(bill)
    return bill


async def ai_detector(owner_id: str, tx_query: TransactionQuery, lookback_days: int) -> Dict[str, Any]:
    """
    Default detector: ask the configured LLM to group the owner's recent
    transactions into recurring patterns.
    """
    cutoff_date = date.today() - timedelta(days=lookback_days)
    transactions = tx_query.since(cutoff_date)

    if len(transactions) < MIN_TRANSACTIONS:
        logger.info("Detection skipped for owner %s: %d transactions", owner_id, len(transactions))
        return {"results": []}

    txn_data = [
        {
            "id": str(t.id),
            "date": t.date.isoformat(),
            "type": t.type.value,
            "amount": float(t.amount),
            "description": t.description or t.category,
        }
        for t in transactions
    ]

    user_prompt = RECURRING_DETECTION_USER.format(
        transactions_json=json.dumps(txn_data, indent=2),
        min_confidence=settings.detection_min_confidence,
    )

    result = await get_ai_client().complete_json(
        system_prompt=RECURRING_DETECTION_SYSTEM,
        user_prompt=user_prompt,
        temperature=0.1,
        max_tokens=2000
    )

    results = []
    for pattern in result.get("recurring_patterns", []):
        if pattern.get("confidence", 0) <= settings.detection_min_confidence:
            continue
        members = tx_query.by_ids(pattern.get("transaction_ids", []))
        if not members:
            continue
        results.append({
            "name": pattern.get("suggested_name") or pattern.get("merchant_pattern"),
            "merchant": pattern.get("merchant_pattern"),
            "kind": pattern.get("kind"),
            "type": members[0].type.value,
            "cadence": pattern.get("frequency"),
            "day_of_month": pattern.get("day_of_month"),
            "amount": pattern.get("average_amount"),
            "last_seen": max(t.date for t in members).isoformat(),
            "count": len(members),
        })

    return {"results": results, "source": "ai", "model": settings.ai_model}


async def run_detection(
    db: Session,
    owner_id: str,
    lookback_days: Optional[int] = None,
    detector: Optional[Detector] = None
) -> Dict[str, Any]:
    """
    Run the detector for one owner and write what it found.

    Malformed results are skipped and counted; one bad cluster never fails
    the whole run.
    """
    lookback_days = lookback_days or settings.detect_lookback_days
    detector = detector or ai_detector

    logger.info("Detection start for owner %s (lookback %d days)", owner_id, lookback_days)
    payload = await detector(owner_id, TransactionQuery(db, owner_id), lookback_days)

    raw_results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(raw_results, list):
        raise DependencyError("Detector returned no results collection")

    written = []
    skipped = 0
    for raw in raw_results:
        try:
            candidate = normalize_candidate(raw)
        except (InvalidInputError, TypeError, ValueError) as e:
            skipped += 1
            logger.warning("Skipped detector result: %s", e)
            continue

        series = upsert_detected_series(db, owner_id, candidate)
        upsert_predicted_bill(db, owner_id, series)
        db.commit()
        db.refresh(series)

        written.append({
            "key": candidate.key,
            "series_id": series.id,
            "kind": series.kind,
            "cadence": series.cadence,
            "next_due": series.next_due,
            "count": candidate.count,
        })

    logger.info("Detection done for owner %s: %d written, %d skipped", owner_id, len(written), skipped)
    return {
        "ok": True,
        "results": written,
        "skipped": skipped,
        "detector": {k: v for k, v in payload.items() if k != "results"},
    }
