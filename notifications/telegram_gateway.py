"""
notifications/telegram_gateway.py
---------------------------------
Delivers reminders as Telegram messages scheduled on the bot's JobQueue.

Each reminder is one job (or one daily job restricted to a weekday for
weekly triggers); the job name is the handle handed back to the engine.
Reminder buttons come back as callback queries carrying "<ACTION>:<id>".
"""

import uuid
from datetime import time as dt_time, tzinfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import Application, CallbackQueryHandler, ContextTypes
from telegram.helpers import escape_markdown

from models.notification import (
    ActionKind,
    ActionResponse,
    DateTrigger,
    DelayTrigger,
    NotificationContent,
    Trigger,
    WeeklyTrigger,
)
from notifications.gateway import ActionCallback, NotificationGateway
from security.auth import authorized_only
from utils.errors import GatewayError
from utils.logger import get_logger

logger = get_logger(__name__)

HANDLE_PREFIX = "reminder-"
CALLBACK_PATTERN = r"^(SNOOZE|DELETE):"

_BUTTON_LABELS = {
    ActionKind.SNOOZE: "😴 Snooze 1d",
    ActionKind.DELETE: "🗑️ Delete",
}
_DONE_LABELS = {
    ActionKind.SNOOZE.value: "😴 Snoozed for a day.",
    ActionKind.DELETE.value: "🗑️ Deleted.",
}


def to_ptb_day(weekday: int) -> int:
    """Convert ``datetime.weekday()`` (Mon=0) to the JobQueue's day numbering (Sun=0)."""
    return (weekday + 1) % 7


def build_keyboard(content: NotificationContent) -> InlineKeyboardMarkup | None:
    """Inline buttons for the content's actions, or None when it has none."""
    if not content.actions or not content.obligation_id:
        return None
    buttons = [
        InlineKeyboardButton(
            _BUTTON_LABELS[action],
            callback_data=f"{action.value}:{content.obligation_id}",
        )
        for action in content.actions
    ]
    return InlineKeyboardMarkup([buttons])


def parse_callback_data(data: str | None) -> ActionResponse:
    """Split "<ACTION>:<id>" into an ActionResponse; missing parts become None."""
    if not data:
        return ActionResponse(action_kind=None, obligation_id=None)
    kind, _, obligation_id = data.partition(":")
    return ActionResponse(action_kind=kind or None, obligation_id=obligation_id or None)


class TelegramNotificationGateway(NotificationGateway):
    """
    NotificationGateway backed by python-telegram-bot's JobQueue.

    Args:
        application: The running telegram Application (must have a job queue).
        chat_id: Chat that receives reminders.
        tz: Wall-clock zone used to interpret naive due dates.
    """

    def __init__(self, application: Application, chat_id: int | None, tz: tzinfo):
        self.application = application
        self.chat_id = chat_id
        self.tz = tz
        self._callbacks: list[ActionCallback] = []

    # ── Scheduling ────────────────────────────────────────

    async def schedule(self, content: NotificationContent, trigger: Trigger) -> str:
        job_queue = self.application.job_queue
        if job_queue is None:
            raise GatewayError("JobQueue unavailable; install python-telegram-bot[job-queue]")
        if self.chat_id is None:
            raise GatewayError("No chat configured for reminders (NOTIFY_CHAT_ID)")

        handle = f"{HANDLE_PREFIX}{uuid.uuid4().hex}"
        try:
            if isinstance(trigger, WeeklyTrigger):
                job_queue.run_daily(
                    self._deliver,
                    time=dt_time(hour=trigger.hour, minute=trigger.minute, tzinfo=self.tz),
                    days=(to_ptb_day(trigger.weekday),),
                    data=content,
                    name=handle,
                    chat_id=self.chat_id,
                )
            elif isinstance(trigger, DelayTrigger):
                job_queue.run_once(
                    self._deliver, when=trigger.seconds,
                    data=content, name=handle, chat_id=self.chat_id,
                )
            elif isinstance(trigger, DateTrigger):
                job_queue.run_once(
                    self._deliver, when=trigger.at.replace(tzinfo=self.tz),
                    data=content, name=handle, chat_id=self.chat_id,
                )
            else:
                raise GatewayError(f"Unsupported trigger: {trigger!r}")
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to schedule reminder: {e}") from e

        logger.debug(f"Scheduled {handle} with {trigger}")
        return handle

    async def is_live(self, handle: str) -> bool:
        job_queue = self.application.job_queue
        if job_queue is None:
            raise GatewayError("JobQueue unavailable")
        return any(not job.removed for job in job_queue.get_jobs_by_name(handle))

    async def cancel(self, handle: str) -> None:
        job_queue = self.application.job_queue
        if job_queue is None:
            raise GatewayError("JobQueue unavailable")
        try:
            for job in job_queue.get_jobs_by_name(handle):
                job.schedule_removal()
        except Exception as e:
            raise GatewayError(f"Failed to cancel {handle}: {e}") from e
        logger.debug(f"Cancelled {handle}")

    async def _deliver(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Job callback: send the reminder message."""
        content: NotificationContent = context.job.data
        await context.bot.send_message(
            chat_id=context.job.chat_id,
            text=f"*{escape_markdown(content.title)}*\n{escape_markdown(content.body)}",
            parse_mode="Markdown",
            reply_markup=build_keyboard(content),
        )
        logger.info(f"Delivered reminder {context.job.name}")

    # ── Action responses ──────────────────────────────────

    def on_action_response(self, callback: ActionCallback) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def callback_query_handler(self) -> CallbackQueryHandler:
        """Handler to register on the Application for reminder buttons."""
        return CallbackQueryHandler(
            authorized_only(self._on_callback_query), pattern=CALLBACK_PATTERN
        )

    async def _on_callback_query(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        await query.answer()
        response = parse_callback_data(query.data)

        try:
            for callback in self._callbacks:
                await callback(response)
        except Exception as e:
            logger.error(f"Action {response.action_kind} for #{response.obligation_id} failed: {e}")
            await query.edit_message_reply_markup(reply_markup=None)
            return

        done = _DONE_LABELS.get(response.action_kind or "", "")
        text = query.message.text if query.message else ""
        await query.edit_message_text(f"{text}\n\n{done}".strip(), reply_markup=None)
