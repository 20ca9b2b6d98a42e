"""
security/rate_limiter.py
-------------------------
Rate limiting middleware to prevent abuse.
Limits the number of commands a user can send within a time window.
"""

import time
from collections import defaultdict
from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

from config import RATE_LIMIT_MESSAGES, RATE_LIMIT_WINDOW_SECONDS
from utils.logger import get_logger

logger = get_logger(__name__)

# In-memory storage for rate tracking: {user_id: [timestamp1, timestamp2, ...]}
_user_timestamps: dict[int, list[float]] = defaultdict(list)


def allow(user_id: int, now: float | None = None) -> bool:
    """
    Record one message for ``user_id`` and report whether it is within the limit.

    Timestamps older than the window are dropped first.
    """
    now = time.time() if now is None else now
    cutoff = now - RATE_LIMIT_WINDOW_SECONDS
    recent = [t for t in _user_timestamps[user_id] if t > cutoff]
    if len(recent) >= RATE_LIMIT_MESSAGES:
        _user_timestamps[user_id] = recent
        return False
    recent.append(now)
    _user_timestamps[user_id] = recent
    return True


def rate_limited(func: Callable):
    """
    Decorator that enforces rate limiting per user.

    Configuration (via .env):
        RATE_LIMIT_MESSAGES: Max messages per window (default: 30).
        RATE_LIMIT_WINDOW_SECONDS: Window duration in seconds (default: 60).
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if not allow(user.id):
            logger.warning(f"⚠️ Rate limit hit for user {user.id}")
            await update.effective_message.reply_text(
                "⚠️ Too many messages. Wait a moment and try again."
            )
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
