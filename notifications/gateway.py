"""
notifications/gateway.py
------------------------
Contract between the scheduling engine and whatever actually delivers reminders.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from models.notification import ActionResponse, NotificationContent, Trigger

ActionCallback = Callable[[ActionResponse], Awaitable[None]]


class NotificationGateway(ABC):
    """
    Schedules reminders and reports button presses.

    All methods may raise ``GatewayError``; callers treat that as non-fatal.
    """

    @abstractmethod
    async def schedule(self, content: NotificationContent, trigger: Trigger) -> str:
        """Schedule ``content`` to fire on ``trigger`` and return its handle."""

    @abstractmethod
    async def cancel(self, handle: str) -> None:
        """
        Cancel a scheduled reminder.

        Cancelling an unknown, already-fired or already-cancelled handle is a no-op.
        """

    @abstractmethod
    def on_action_response(self, callback: ActionCallback) -> None:
        """Subscribe ``callback`` to inbound action responses."""

    async def is_live(self, handle: str) -> bool:
        """
        Whether ``handle`` still refers to a pending reminder.

        Gateways whose schedules survive a process restart can keep this default.
        """
        return True
