"""Next-occurrence arithmetic for recurring cadences."""

import calendar
from datetime import date, timedelta
from typing import Optional

from app.models.recurring import Cadence


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(from_date: date, months: int, anchor_day: Optional[int] = None) -> date:
    """
    Move forward by whole calendar months keeping the anchor day.

    Short months clamp to their last day rather than rolling over, so
    Jan 31 + 1 month is Feb 28 (or 29), never Mar 2.
    """
    day = anchor_day or from_date.day
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day, days_in_month(year, month)))


def next_occurrence(
    from_date: date,
    cadence: Cadence,
    day_of_month: Optional[int] = None
) -> Optional[date]:
    """
    Calculate the next expected date after ``from_date``.

    Returns None for ``Cadence.unknown``: an unclassified series has no
    projection. Every other cadence returns a date strictly after
    ``from_date``.
    """
    cadence = Cadence(cadence)

    if cadence == Cadence.weekly:
        return from_date + timedelta(days=7)
    elif cadence == Cadence.biweekly:
        return from_date + timedelta(days=14)
    elif cadence == Cadence.semimonthly:
        if from_date.day < 15:
            return from_date.replace(day=15)
        return add_months(from_date, 1, anchor_day=1)
    elif cadence == Cadence.monthly:
        return add_months(from_date, 1, anchor_day=day_of_month)
    elif cadence == Cadence.quarterly:
        return add_months(from_date, 3, anchor_day=day_of_month)
    elif cadence == Cadence.yearly:
        return add_months(from_date, 12, anchor_day=day_of_month)
    else:
        return None
