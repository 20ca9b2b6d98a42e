"""
models/notification.py
----------------------
Value types exchanged with a notification gateway: what to show (content),
when to fire (trigger), and which button the user pressed (action response).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class ActionKind(str, Enum):
    """Buttons attached to a due-date reminder."""

    SNOOZE = "SNOOZE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class DateTrigger:
    """Fire once at an absolute local time."""
    at: datetime


@dataclass(frozen=True)
class DelayTrigger:
    """Fire once after a relative delay."""
    seconds: int


@dataclass(frozen=True)
class WeeklyTrigger:
    """
    Fire every week on ``weekday`` at ``hour:minute``.

    ``weekday`` follows ``datetime.weekday()``: Monday is 0, Sunday is 6.
    """
    weekday: int
    hour: int
    minute: int


Trigger = Union[DateTrigger, DelayTrigger, WeeklyTrigger]


@dataclass(frozen=True)
class NotificationContent:
    title: str
    body: str
    obligation_id: Optional[str] = None
    actions: tuple[ActionKind, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ActionResponse:
    """An inbound button press from the gateway's action channel."""
    action_kind: Optional[str]
    obligation_id: Optional[str]
