"""
utils/calendar.py
-----------------
Pure calendar arithmetic on naive local wall-clock datetimes.
No timezone conversion happens here.
"""

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from config import DEFAULT_DUE_HOUR
from models.obligation import Frequency, Obligation


def add_months(dt: datetime, n: int) -> datetime:
    """
    Add ``n`` calendar months, clamping the day to the target month's length.

    Examples:
        Jan 31 + 1 -> Feb 28 (Feb 29 in leap years)
        Mar 31 + 1 -> Apr 30
    """
    return dt + relativedelta(months=n)


def add_years(dt: datetime, n: int) -> datetime:
    """Add ``n`` years; Feb 29 lands on Feb 28 in non-leap target years."""
    return dt + relativedelta(years=n)


def add_days(dt: datetime, n: int) -> datetime:
    """Add exactly ``n`` calendar days, keeping the time of day."""
    return dt + timedelta(days=n)


def next_occurrence(obligation: Obligation) -> datetime:
    """
    Return the due instant following ``obligation.due_at``.

    One-time obligations never recur, so their due date is returned as-is.
    Weekly obligations are repeated by the gateway itself; the value is
    only used for display and export.
    """
    due = obligation.due_at
    if obligation.frequency == Frequency.MONTHLY:
        return add_months(due, 1)
    if obligation.frequency == Frequency.YEARLY:
        return add_years(due, 1)
    if obligation.frequency == Frequency.WEEKLY:
        return add_days(due, 7)
    return due


def default_due(now: datetime) -> datetime:
    """Tomorrow at the default reminder hour."""
    tomorrow = add_days(now, 1)
    return tomorrow.replace(hour=DEFAULT_DUE_HOUR, minute=0, second=0, microsecond=0)
