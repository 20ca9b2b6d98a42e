"""
models/obligation.py
--------------------
Domain model for payment obligations (bills, subscriptions, one-off dues).
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class Frequency(str, Enum):
    """How often an obligation falls due."""

    ONE_TIME = "one-time"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def is_recurring(self) -> bool:
        return self is not Frequency.ONE_TIME


@dataclass
class ObligationDraft:
    """
    Raw input for a new obligation, as typed by the user.

    ``amount`` stays a string here: parsing it is part of validation.
    """
    title: str
    due_at: datetime
    amount: Optional[str] = None
    frequency: Frequency = Frequency.ONE_TIME
    notes: Optional[str] = None


@dataclass
class Obligation:
    """
    Represents a tracked payment obligation.

    Attributes:
        id: Opaque unique identifier, assigned at creation.
        title: Display name (e.g., 'Rent', 'Netflix').
        currency: 3-letter currency code, fixed at creation.
        due_at: Local wall-clock instant when the obligation is next due.
        frequency: Recurrence, fixed at creation.
        amount: Optional non-negative amount; None means "not tracked".
        notification_handle: Handle of the live reminder, or None.
        created_at: Creation timestamp (ordering/audit only).
        notes: Optional free text.
    """
    id: str
    title: str
    currency: str
    due_at: datetime
    frequency: Frequency
    amount: Optional[Decimal] = None
    notification_handle: Optional[str] = None
    created_at: Optional[datetime] = None
    notes: Optional[str] = None

    def days_until(self, today: date) -> int:
        """Whole calendar days from ``today`` to the due date (negative when overdue)."""
        return (self.due_at.date() - today).days
