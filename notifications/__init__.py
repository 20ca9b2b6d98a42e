"""
notifications/ - Notification Gateway
======================================
Abstract scheduling primitive (schedule / cancel / action responses)
and its Telegram job-queue implementation.
"""
