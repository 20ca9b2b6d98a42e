"""
handlers/export_handler.py
---------------------------
Handles data export commands (CSV, Excel).
Delegates to ExportService.
"""

from datetime import date

from telegram import Update
from telegram.ext import ContextTypes

from handlers import get_engine
from services.export_service import ExportService
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)


@authorized_only
@rate_limited
async def export_csv_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export_csv command - send every obligation as CSV."""
    await update.message.reply_text("📄 Preparing CSV...")

    try:
        buffer = ExportService(get_engine(context)).export_csv()
        await update.message.reply_document(
            document=buffer,
            filename=f"obligations_{date.today():%Y_%m_%d}.csv",
            caption="📊 Your payments - CSV",
        )
    except Exception as e:
        logger.error(f"CSV export failed: {e}")
        await update.message.reply_text("❌ Export failed. Please try again.")


@authorized_only
@rate_limited
async def export_excel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export_excel command - send every obligation as Excel."""
    await update.message.reply_text("📊 Preparing Excel file...")

    try:
        buffer = ExportService(get_engine(context)).export_excel()
        await update.message.reply_document(
            document=buffer,
            filename=f"obligations_{date.today():%Y_%m_%d}.xlsx",
            caption="📊 Your payments - Excel",
        )
    except Exception as e:
        logger.error(f"Excel export failed: {e}")
        await update.message.reply_text("❌ Export failed. Please try again.")
