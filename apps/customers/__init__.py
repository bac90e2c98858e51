"""Customer identity records.

Bookings made by guests without an account still need a stable identity;
the booking engine finds or creates a minimal record keyed by email.
"""
