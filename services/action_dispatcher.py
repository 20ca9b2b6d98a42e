"""
services/action_dispatcher.py
------------------------------
Routes reminder button presses (snooze / delete) to the scheduling engine.
"""

from config import DEFAULT_SNOOZE_DAYS
from models.notification import ActionKind, ActionResponse
from notifications.gateway import NotificationGateway
from services.scheduling_service import SchedulingService
from utils.errors import NotFoundError
from utils.logger import get_logger

logger = get_logger(__name__)


class ActionDispatcher:
    """
    The only consumer of the gateway's action-response channel.

    Recognizes a fixed set of action kinds; anything else is dropped.
    Call ``register`` once during startup. Registering again with the
    same gateway is a no-op.
    """

    RECOGNIZED = frozenset(kind.value for kind in ActionKind)

    def __init__(self, engine: SchedulingService):
        self.engine = engine
        self._registered: set[int] = set()

    def register(self, gateway: NotificationGateway) -> None:
        if id(gateway) in self._registered:
            return
        gateway.on_action_response(self.handle)
        self._registered.add(id(gateway))
        logger.info(f"Action dispatcher registered for {sorted(self.RECOGNIZED)}")

    async def handle(self, response: ActionResponse) -> None:
        if not response.obligation_id or response.action_kind not in self.RECOGNIZED:
            logger.debug(f"Dropping unrecognized action response: {response}")
            return

        if response.action_kind == ActionKind.SNOOZE.value:
            try:
                await self.engine.snooze(response.obligation_id, DEFAULT_SNOOZE_DAYS)
            except NotFoundError:
                logger.info(f"Snooze ignored: #{response.obligation_id} no longer exists")
        elif response.action_kind == ActionKind.DELETE.value:
            await self.engine.remove(response.obligation_id)
