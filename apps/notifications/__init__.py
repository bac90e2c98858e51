"""Notifications app package.

Outbound customer email for the booking engine. Delivery is best-effort:
callers get a boolean back and never an exception.
"""
