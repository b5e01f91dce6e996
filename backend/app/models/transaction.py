"""
Ledger transaction database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Numeric, Float, Text, Enum, Index
import enum
from app.database import Base


class TransactionType(str, enum.Enum):
    """Transaction direction enumeration."""
    income = "income"
    expense = "expense"


class TransactionSource(str, enum.Enum):
    """Where the transaction came from."""
    manual = "manual"
    aggregator = "aggregator"


class Transaction(Base):
    """
    Ledger transaction.

    Owned by the ledger; the recurring engine only writes the matched_*
    back-references and creates manual rows when no transaction exists.
    """

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(64), nullable=False, index=True)
    type = Column(Enum(TransactionType), nullable=False)
    category = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)  # Always >= 0, direction is in type
    date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    source = Column(Enum(TransactionSource), nullable=False, default=TransactionSource.manual)
    account_id = Column(String(64), nullable=True, index=True)
    account_name = Column(String(255), nullable=True)
    external_id = Column(String(128), nullable=True)  # Aggregator-origin id

    # Recurring links (weak references, no foreign keys)
    matched_bill_id = Column(String(36), nullable=True, index=True)
    matched_paycheck_id = Column(String(36), nullable=True, index=True)
    matched_series_id = Column(String(36), nullable=True, index=True)
    match_confidence = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_transaction_owner_date", "owner_id", "date"),
        Index("idx_transaction_owner_external", "owner_id", "external_id"),
    )
