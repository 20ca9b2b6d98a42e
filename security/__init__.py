"""
security/ - Access Control
===========================
Whitelist and rate-limit decorators applied to every Telegram handler.
"""
