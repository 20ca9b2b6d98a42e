"""
handlers/ - Presentation Layer
================================
Telegram bot handlers. Each handler receives updates from Telegram,
delegates to the SchedulingService stored in ``bot_data``, and sends
the response back to the user.
No business logic lives here.
"""

from telegram.ext import ContextTypes

from services.scheduling_service import SchedulingService

ENGINE_KEY = "engine"


def get_engine(context: ContextTypes.DEFAULT_TYPE) -> SchedulingService:
    """The application's SchedulingService, installed by main.py at startup."""
    return context.application.bot_data[ENGINE_KEY]
