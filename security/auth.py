"""
security/auth.py
-----------------
Authentication middleware for the Telegram bot.
Blocks any user not in the allowed whitelist, for commands and reminder buttons alike.
"""

from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

from config import ALLOWED_USER_IDS
from utils.logger import get_logger

logger = get_logger(__name__)


def is_allowed(user_id: int) -> bool:
    """An empty whitelist allows everyone (dev mode)."""
    return not ALLOWED_USER_IDS or user_id in ALLOWED_USER_IDS


def authorized_only(func: Callable):
    """
    Decorator that restricts a handler to whitelisted users only.

    Usage:
        @authorized_only
        async def my_handler(update, context):
            ...

    Behavior:
        - If ALLOWED_USER_IDS is empty, ALL users are allowed (dev mode).
        - If the list is set, only those users can use the bot.
        - Unauthorized attempts are logged; button presses get a popup instead of a reply.
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if is_allowed(user.id):
            return await func(update, context, *args, **kwargs)

        logger.warning(
            f"🚫 Unauthorized access attempt: user_id={user.id}, "
            f"username={user.username}, name={user.first_name}"
        )
        if update.callback_query:
            await update.callback_query.answer("⛔ Not allowed.", show_alert=True)
        elif update.effective_message:
            await update.effective_message.reply_text(
                "⛔ Sorry, this bot is private."
            )

    return wrapper
