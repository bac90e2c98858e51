"""Payment reconciliation.

Consumes Stripe webhook events and administrator recovery requests and
drives booking state from them. Every entry point is idempotent: events
arrive more than once, out of order, or never.
"""
