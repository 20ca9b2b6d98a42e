"""
utils/ - Shared Helpers
========================
Logging setup, the error taxonomy, and pure calendar arithmetic.
Nothing here touches the database or Telegram.
"""
