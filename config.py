"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── Telegram ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "billnudge")
DB_USER: str = os.getenv("DB_USER", "billnudge_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# ── Security ──────────────────────────────────────────────
_raw_ids = os.getenv("ALLOWED_USER_IDS", "")
ALLOWED_USER_IDS: list[int] = (
    [int(uid.strip()) for uid in _raw_ids.split(",") if uid.strip()]
    if _raw_ids
    else []
)

# Chat that receives due-date reminders (defaults to the first allowed user)
_raw_chat = os.getenv("NOTIFY_CHAT_ID", "")
NOTIFY_CHAT_ID: int | None = (
    int(_raw_chat) if _raw_chat.strip()
    else (ALLOWED_USER_IDS[0] if ALLOWED_USER_IDS else None)
)

# ── Rate Limiting ─────────────────────────────────────────
RATE_LIMIT_MESSAGES: int = int(os.getenv("RATE_LIMIT_MESSAGES", "30"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# ── Locale & Currency ─────────────────────────────────────
# Wall-clock zone for every due date (IANA name)
TIMEZONE: str = os.getenv("TIMEZONE", "UTC")
LOCALE: str = os.getenv("LOCALE", "")
CURRENCY: str = os.getenv("CURRENCY", "").upper()
FALLBACK_CURRENCY: str = "USD"

# ── Scheduling ────────────────────────────────────────────
GATEWAY_TIMEOUT_SECONDS: float = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "5"))
SHORT_WINDOW_SECONDS: int = 90
ACK_DELAY_SECONDS: int = 10
DEFAULT_SNOOZE_DAYS: int = 1
DEFAULT_DUE_HOUR: int = 9

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
