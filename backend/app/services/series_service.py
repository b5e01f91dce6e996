"""Service for recurring series CRUD and lifecycle."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Dict, Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.exceptions import InvalidInputError, NotFoundError
from app.models.recurring import RecurringSeries, Bill, PaycheckHit, SeriesKind, Cadence
from app.models.transaction import Transaction

logger = logging.getLogger(__name__)

SERIES_FIELDS = (
    "kind", "name", "merchant", "cadence", "day_of_month",
    "weekday", "amount_hint", "active", "next_due",
)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


def parse_enum(enum_cls, value, field: str):
    """Parse a loosely-typed value into ``enum_cls``, rejecting unknown members."""
    try:
        return enum_cls(value.strip().lower() if isinstance(value, str) else value)
    except ValueError:
        raise InvalidInputError(f"invalid {field}: {value}")


def clamp_snooze_days(days: int) -> int:
    return clamp(days, 1, 365)


def list_series(
    db: Session,
    owner_id: str,
    kind: Optional[SeriesKind] = None,
    active: Optional[bool] = None,
    q: Optional[str] = None
) -> List[RecurringSeries]:
    """List an owner's series, optionally filtered by kind, active flag and free text."""
    query = db.query(RecurringSeries).filter(RecurringSeries.owner_id == owner_id)

    if kind:
        query = query.filter(RecurringSeries.kind == parse_enum(SeriesKind, kind, "kind"))
    if active is not None:
        query = query.filter(RecurringSeries.active == active)
    if q and q.strip():
        search_term = f"%{q.strip()}%"
        query = query.filter(
            or_(
                RecurringSeries.name.ilike(search_term),
                RecurringSeries.merchant.ilike(search_term)
            )
        )

    return query.order_by(RecurringSeries.name).all()


def find_owned_series(db: Session, owner_id: str, series_id: Optional[str]) -> Optional[RecurringSeries]:
    """Resolve a series id for the owner, or None. Foreign ids resolve to None."""
    if not series_id or not isinstance(series_id, str):
        return None
    return db.query(RecurringSeries).filter(
        RecurringSeries.id == series_id,
        RecurringSeries.owner_id == owner_id
    ).first()


def get_series(db: Session, owner_id: str, series_id: str) -> RecurringSeries:
    series = find_owned_series(db, owner_id, series_id)
    if not series:
        raise NotFoundError("Recurring series not found")
    return series


def _normalize_series_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and clamp incoming series fields."""
    values = {k: v for k, v in data.items() if k in SERIES_FIELDS}

    if values.get("day_of_month") is not None:
        values["day_of_month"] = clamp(values["day_of_month"], 1, 28)
    if values.get("weekday") is not None:
        values["weekday"] = clamp(values["weekday"], 0, 6)
    if values.get("amount_hint") is not None:
        amount_hint = Decimal(str(values["amount_hint"]))
        if amount_hint < 0:
            raise InvalidInputError("amount_hint must be >= 0")
        values["amount_hint"] = amount_hint
    if "name" in values:
        name = (values["name"] or "").strip()
        if not name:
            raise InvalidInputError("name required")
        values["name"] = name
    if values.get("merchant") is not None:
        values["merchant"] = values["merchant"].strip() or None
    if "kind" in values:
        if values["kind"] is None:
            raise InvalidInputError("kind required")
        values["kind"] = parse_enum(SeriesKind, values["kind"], "kind")
    if "cadence" in values:
        values["cadence"] = parse_enum(Cadence, values["cadence"] or Cadence.unknown, "cadence")
    if "active" in values and values["active"] is None:
        values.pop("active")

    return values


def upsert_series(
    db: Session,
    owner_id: str,
    data: Dict[str, Any],
    series_id: Optional[str] = None
) -> RecurringSeries:
    """
    Create a series when no id is given, else update the owner's series.

    Only keys present in ``data`` are written on update.
    """
    values = _normalize_series_fields(data)

    if series_id:
        series = get_series(db, owner_id, series_id)
    else:
        if "kind" not in values:
            raise InvalidInputError("kind required")
        if "name" not in values:
            raise InvalidInputError("name required")
        series = RecurringSeries(
            owner_id=owner_id,
            cadence=Cadence.unknown,
            active=True,
        )
        db.add(series)

    for field, value in values.items():
        setattr(series, field, value)

    if series.next_due and series.last_seen and series.next_due < series.last_seen:
        db.rollback()
        raise InvalidInputError("next_due cannot be earlier than last_seen")

    db.commit()
    db.refresh(series)
    logger.info("Saved series %s (%s, %s) for owner %s", series.id, series.kind.value, series.cadence.value, owner_id)
    return series


def delete_series(db: Session, owner_id: str, series_id: str) -> None:
    """Delete a series, detaching (not deleting) its bills, paychecks and transaction links."""
    series = get_series(db, owner_id, series_id)

    db.query(Bill).filter(
        Bill.owner_id == owner_id,
        Bill.series_id == series.id
    ).update({Bill.series_id: None}, synchronize_session=False)
    db.query(PaycheckHit).filter(
        PaycheckHit.owner_id == owner_id,
        PaycheckHit.series_id == series.id
    ).update({PaycheckHit.series_id: None}, synchronize_session=False)
    db.query(Transaction).filter(
        Transaction.owner_id == owner_id,
        Transaction.matched_series_id == series.id
    ).update({Transaction.matched_series_id: None}, synchronize_session=False)

    db.delete(series)
    db.commit()
    db.expire_all()
    logger.info("Deleted series %s for owner %s", series_id, owner_id)


def snooze_series(
    db: Session,
    owner_id: str,
    series_id: str,
    days: int,
    today: Optional[date] = None
) -> RecurringSeries:
    """Push next_due forward from its current value (or today when unset)."""
    series = get_series(db, owner_id, series_id)
    base = series.next_due or today or date.today()
    series.next_due = base + timedelta(days=clamp_snooze_days(days))

    db.commit()
    db.refresh(series)
    return series
