"""
handlers/start_handler.py
--------------------------
Handles /start, /help and /myid commands.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)

HELP_TEXT = """
🤖 *Welcome to BillNudge!*
I remind you when bills and subscriptions fall due 💸

*➕ Adding a payment:*
`/add Title | amount | date [time] | frequency | notes`
• `/add Rent | 800 | 2026-03-01 | monthly`
• `/add Gym | 30 | 2026-03-02 18:30 | weekly`
• `/add Car insurance | | 2026-06-15 | yearly`
Amount, date, frequency and notes are optional.
Frequency: one-time, weekly, monthly, yearly.

*🔧 Commands:*
/list - upcoming payments
/snooze - push a payment back (e.g. /snooze 3f2a 2)
/delete - delete a payment (e.g. /delete 3f2a)
/export\\_csv - export as CSV
/export\\_excel - export as Excel
/myid - show your Telegram ID
"""


@authorized_only
@rate_limited
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - show welcome message."""
    user = update.effective_user
    logger.info(f"User {user.id} ({user.first_name}) started the bot.")

    await update.message.reply_text(
        f"Hi {user.first_name}! 👋\n"
        f"Tell me about your bills and I'll remind you when they're due, "
        f"even if I was offline at the time.\n\n"
        f"Type /help to see every command.",
    )


@authorized_only
@rate_limited
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command - show all available commands."""
    await update.message.reply_text(HELP_TEXT, parse_mode="Markdown")


@authorized_only
async def myid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /myid command - show user's Telegram ID for whitelisting."""
    user = update.effective_user
    await update.message.reply_text(
        f"🆔 Your ID: `{user.id}`\n"
        f"Add it to `ALLOWED_USER_IDS` (and `NOTIFY_CHAT_ID`) in `.env` to lock the bot down.",
        parse_mode="Markdown",
    )
