"""
Database models package.
"""

from app.models.recurring import (
    RecurringSeries,
    Bill,
    PaycheckHit,
    SeriesKind,
    Cadence,
    BillStatus,
    OPEN_BILL_STATUSES,
)
from app.models.transaction import Transaction, TransactionType, TransactionSource

__all__ = [
    "RecurringSeries",
    "Bill",
    "PaycheckHit",
    "SeriesKind",
    "Cadence",
    "BillStatus",
    "OPEN_BILL_STATUSES",
    "Transaction",
    "TransactionType",
    "TransactionSource",
]
