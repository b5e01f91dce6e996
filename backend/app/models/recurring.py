"""
Recurring series, bill and paycheck hit database models.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Numeric, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class SeriesKind(str, enum.Enum):
    """Recurring series kind enumeration."""
    bill = "bill"
    subscription = "subscription"
    paycheck = "paycheck"


class Cadence(str, enum.Enum):
    """Recurrence interval enumeration."""
    weekly = "weekly"
    biweekly = "biweekly"
    semimonthly = "semimonthly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"
    unknown = "unknown"


class BillStatus(str, enum.Enum):
    """Bill status enumeration."""
    predicted = "predicted"
    due = "due"
    paid = "paid"
    skipped = "skipped"


OPEN_BILL_STATUSES = (BillStatus.predicted, BillStatus.due)


class RecurringSeries(Base):
    """Named recurring pattern of bills, subscriptions or paychecks."""

    __tablename__ = "recurring_series"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(64), nullable=False, index=True)
    kind = Column(Enum(SeriesKind), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    merchant = Column(String(255), nullable=True)
    cadence = Column(Enum(Cadence), nullable=False, default=Cadence.unknown)
    day_of_month = Column(Integer, nullable=True)  # 1..28
    weekday = Column(Integer, nullable=True)  # 0..6
    amount_hint = Column(Numeric(12, 2), nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    last_seen = Column(Date, nullable=True)
    next_due = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships (non-owning: deleting a series never deletes these)
    bills = relationship("Bill", back_populates="series", passive_deletes=True)
    paycheck_hits = relationship("PaycheckHit", back_populates="series", passive_deletes=True)

    __table_args__ = (
        Index("idx_series_owner_kind_name", "owner_id", "kind", "name"),
    )


class Bill(Base):
    """A single expected or realized expense instance."""

    __tablename__ = "bills"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(64), nullable=False, index=True)
    series_id = Column(String(36), ForeignKey("recurring_series.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    merchant = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    due_date = Column(Date, nullable=True, index=True)
    status = Column(Enum(BillStatus), nullable=False, default=BillStatus.due, index=True)
    tx_id = Column(String(128), nullable=True, index=True)  # Linked ledger transaction
    paid_at = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    series = relationship("RecurringSeries", back_populates="bills")

    __table_args__ = (
        Index("idx_bill_owner_status_due", "owner_id", "status", "due_date"),
    )


class PaycheckHit(Base):
    """A single realized income event."""

    __tablename__ = "paycheck_hits"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(64), nullable=False, index=True)
    series_id = Column(String(36), ForeignKey("recurring_series.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    account_id = Column(String(64), nullable=True)
    employer_name = Column(String(255), nullable=True)
    tx_id = Column(String(128), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    series = relationship("RecurringSeries", back_populates="paycheck_hits")

    __table_args__ = (
        Index("idx_paycheck_owner_date", "owner_id", "date"),
    )
