"""
services/ - Business Logic Layer
=================================
The scheduling engine and everything it coordinates with: currency
resolution, action dispatch, and export. Services never talk to
Telegram directly; they go through the notification gateway.
"""
