"""
handlers/obligation_handler.py
------------------------------
Handles obligation commands: /add, /list, /snooze, /delete.
Parses the structured command text and delegates to the SchedulingService.
"""

from datetime import datetime
from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from config import DEFAULT_DUE_HOUR, DEFAULT_SNOOZE_DAYS
from handlers import get_engine
from models.obligation import Frequency, Obligation, ObligationDraft
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services.currency_service import format_money
from services.scheduling_service import SchedulingService
from utils.calendar import default_due
from utils.errors import NotFoundError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

SHORT_ID_LENGTH = 6

# Frequency mapping
_FREQ_MAP = {
    "": Frequency.ONE_TIME,
    "one-time": Frequency.ONE_TIME, "onetime": Frequency.ONE_TIME,
    "once": Frequency.ONE_TIME, "one time": Frequency.ONE_TIME,
    "weekly": Frequency.WEEKLY, "week": Frequency.WEEKLY,
    "monthly": Frequency.MONTHLY, "month": Frequency.MONTHLY,
    "yearly": Frequency.YEARLY, "year": Frequency.YEARLY, "annual": Frequency.YEARLY,
}


def parse_due(text: str, now: datetime) -> datetime:
    """
    Parse "YYYY-MM-DD" or "YYYY-MM-DD HH:MM".

    A bare date gets the default reminder hour; blank input means tomorrow.

    Raises:
        ValidationError: If the text is not a valid date.
    """
    text = text.strip()
    if not text:
        return default_due(now)
    try:
        due = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Can't read the date {text!r}. Use YYYY-MM-DD [HH:MM].")
    if len(text) == 10:
        due = due.replace(hour=DEFAULT_DUE_HOUR)
    return due


def parse_add_args(text: str, now: datetime) -> ObligationDraft:
    """
    Parse the structured /add format:
      Title | amount | date [time] | frequency | notes

    Everything after the title is optional; the notes may contain further pipes.
    Example:
      Rent | 800 | 2026-03-01 | monthly

    Raises:
        ValidationError: On an unreadable date or unknown frequency.
    """
    parts = [p.strip() for p in text.split("|", 4)]
    parts += [""] * (5 - len(parts))
    title, amount, due_text, freq_text, notes = parts

    frequency = _FREQ_MAP.get(freq_text.lower())
    if frequency is None:
        raise ValidationError(
            f"Unknown frequency {freq_text!r}. Use one-time, weekly, monthly or yearly."
        )

    return ObligationDraft(
        title=title,
        amount=amount or None,
        due_at=parse_due(due_text, now),
        frequency=frequency,
        notes=notes or None,
    )


def resolve_id(engine: SchedulingService, token: str) -> Optional[str]:
    """Match a full id or an unambiguous id prefix as shown by /list."""
    token = token.strip().lower()
    if not token:
        return None
    matches = [o.id for o in engine.list_obligations() if o.id.startswith(token)]
    return matches[0] if len(matches) == 1 else None


def format_line(o: Obligation, today) -> str:
    days = o.days_until(today)
    if days < 0:
        when = f"overdue {-days}d"
    elif days == 0:
        when = "due today"
    else:
        when = f"in {days}d"
    amount = f" {format_money(o.amount, o.currency)}" if o.amount is not None else ""
    bell = "" if o.notification_handle else " 🔕"
    return (
        f"  `{o.id[:SHORT_ID_LENGTH]}` {escape_markdown(o.title)}:{amount} "
        f"({o.frequency.value}) - {o.due_at:%Y-%m-%d %H:%M}, {when}{bell}"
    )


@authorized_only
@rate_limited
async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /add - add a new payment obligation.

    Format:
        /add Title | amount | YYYY-MM-DD [HH:MM] | frequency | notes

    Examples:
        /add Netflix | 15 | 2026-03-05 | monthly
        /add Gym | | 2026-03-02 18:30 | weekly
    """
    if not context.args:
        await update.message.reply_text(
            "📝 *Add a payment*\n\n"
            "`/add Title | amount | YYYY-MM-DD [HH:MM] | frequency | notes`\n\n"
            "• `/add Rent | 800 | 2026-03-01 | monthly`\n"
            "• `/add Dentist | | 2026-04-10 14:00`",
            parse_mode="Markdown",
        )
        return

    engine = get_engine(context)
    try:
        draft = parse_add_args(" ".join(context.args), engine.clock())
        result = await engine.add(draft)
    except ValidationError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    saved = result.obligation
    if result.scheduled:
        msg = f"✅ Reminder scheduled for {saved.title} on {saved.due_at:%Y-%m-%d %H:%M}."
    else:
        msg = (
            f"⚠️ Saved {saved.title}, but no reminder could be scheduled. "
            f"Check the bot's notification settings."
        )
    await update.message.reply_text(msg)


@authorized_only
@rate_limited
async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list command - show every obligation, earliest due first."""
    engine = get_engine(context)
    obligations = engine.list_obligations()
    if not obligations:
        await update.message.reply_text("📭 No payments tracked yet. Use /add.")
        return

    today = engine.clock().date()
    lines = ["🗓️ *Upcoming payments:*\n"]
    lines += [format_line(o, today) for o in obligations]
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@authorized_only
@rate_limited
async def snooze_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /snooze <id> [days] - push a payment's due date back.
    Usage: /snooze 3f2a1c 2
    """
    if not context.args:
        await update.message.reply_text("⚠️ Usage: /snooze <id> [days]\nExample: /snooze 3f2a1c 2")
        return

    engine = get_engine(context)
    obligation_id = resolve_id(engine, context.args[0])
    if obligation_id is None:
        await update.message.reply_text(f"⚠️ No single payment matches {context.args[0]!r}.")
        return

    try:
        days = int(context.args[1]) if len(context.args) > 1 else DEFAULT_SNOOZE_DAYS
        snoozed = await engine.snooze(obligation_id, days)
    except ValueError:
        await update.message.reply_text("⚠️ Days must be a whole number.")
        return
    except (ValidationError, NotFoundError) as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    await update.message.reply_text(
        f"😴 {snoozed.title} moved to {snoozed.due_at:%Y-%m-%d %H:%M}."
    )


@authorized_only
@rate_limited
async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /delete <id> - delete a payment and its reminder.
    Usage: /delete 3f2a1c
    """
    if not context.args:
        await update.message.reply_text("⚠️ Usage: /delete <id>\nExample: /delete 3f2a1c")
        return

    engine = get_engine(context)
    obligation_id = resolve_id(engine, context.args[0])
    if obligation_id is None:
        await update.message.reply_text(f"⚠️ No single payment matches {context.args[0]!r}.")
        return

    await engine.remove(obligation_id)
    await update.message.reply_text("🗑️ Payment deleted.")
