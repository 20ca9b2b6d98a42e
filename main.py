"""
main.py
-------
Entry point for the BillNudge Telegram bot.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Wire the scheduling engine to the obligation store and the Telegram gateway.
    - Roll overdue obligations forward before the bot starts answering.
    - Configure and start the Telegram bot with all handlers.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from telegram import BotCommand
from telegram.ext import Application, CommandHandler, Defaults

from config import NOTIFY_CHAT_ID, TELEGRAM_BOT_TOKEN, TIMEZONE
from db.connection import init_pool, close_pool
from db.init_db import create_tables
from handlers import ENGINE_KEY
from handlers.start_handler import start_command, help_command, myid_command
from handlers.obligation_handler import (
    add_command,
    list_command,
    snooze_command,
    delete_command,
)
from handlers.export_handler import export_csv_command, export_excel_command
from notifications.telegram_gateway import TelegramNotificationGateway
from repositories.obligation_repo import ObligationRepository
from services.action_dispatcher import ActionDispatcher
from services.currency_service import CurrencyResolver
from services.scheduling_service import SchedulingService
from utils.logger import get_logger

logger = get_logger(__name__)

DISPATCHER_KEY = "dispatcher"


def local_clock(tz: ZoneInfo):
    """Naive wall-clock 'now' in the configured zone."""
    def now() -> datetime:
        return datetime.now(tz).replace(tzinfo=None)
    return now


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    commands = [
        BotCommand("start", "🚀 Start"),
        BotCommand("help", "📖 Help"),
        BotCommand("add", "➕ Add a payment"),
        BotCommand("list", "🗓️ Upcoming payments"),
        BotCommand("snooze", "😴 Snooze a payment"),
        BotCommand("delete", "🗑️ Delete a payment"),
        BotCommand("export_csv", "📄 Export CSV"),
        BotCommand("export_excel", "📊 Export Excel"),
        BotCommand("myid", "🆔 Your Telegram ID"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands menu registered successfully.")


async def on_startup(application: Application) -> None:
    """
    post_init hook: runs once before polling starts.

    Roll-forward has to finish here; until it does the engine
    refuses every mutation.
    """
    await set_bot_commands(application)

    engine: SchedulingService = application.bot_data[ENGINE_KEY]
    dispatcher: ActionDispatcher = application.bot_data[DISPATCHER_KEY]
    dispatcher.register(engine.gateway)

    advanced = await engine.roll_forward()
    logger.info(f"Startup reconciliation done: {len(advanced)} obligation(s) rolled forward.")


async def on_shutdown(application: Application) -> None:
    """post_shutdown hook: let pending acknowledgements finish."""
    engine: SchedulingService = application.bot_data[ENGINE_KEY]
    await engine.wait_idle()


def main() -> None:
    """Initialize and run the bot."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    init_pool()
    create_tables()

    # ── 2. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    tz = ZoneInfo(TIMEZONE)
    app = (
        Application.builder()
        .token(TELEGRAM_BOT_TOKEN)
        .defaults(Defaults(tzinfo=tz))
        .post_init(on_startup)
        .post_shutdown(on_shutdown)
        .build()
    )
    if app.job_queue is None:
        logger.warning("JobQueue missing: reminders cannot be scheduled. "
                       "Install python-telegram-bot[job-queue].")
    if NOTIFY_CHAT_ID is None:
        logger.warning("NOTIFY_CHAT_ID not set: reminders cannot be delivered.")

    # ── 3. Wire the scheduling engine ─────────────────────
    gateway = TelegramNotificationGateway(app, chat_id=NOTIFY_CHAT_ID, tz=tz)
    engine = SchedulingService(
        store=ObligationRepository(),
        gateway=gateway,
        currency=CurrencyResolver(),
        clock=local_clock(tz),
    )
    app.bot_data[ENGINE_KEY] = engine
    app.bot_data[DISPATCHER_KEY] = ActionDispatcher(engine)

    # ── 4. Register command handlers ──────────────────────
    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("myid", myid_command))
    app.add_handler(CommandHandler("add", add_command))
    app.add_handler(CommandHandler("list", list_command))
    app.add_handler(CommandHandler("snooze", snooze_command))
    app.add_handler(CommandHandler("delete", delete_command))
    app.add_handler(CommandHandler("export_csv", export_csv_command))
    app.add_handler(CommandHandler("export_excel", export_excel_command))

    # ── 5. Reminder buttons (snooze / delete) ─────────────
    app.add_handler(gateway.callback_query_handler())

    # ── 6. Start polling ──────────────────────────────────
    logger.info(f"🚀 BillNudge is running ({TIMEZONE}). Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message", "callback_query"])

    # ── 7. Cleanup on shutdown ────────────────────────────
    close_pool()
    logger.info("BillNudge stopped.")


if __name__ == "__main__":
    main()
