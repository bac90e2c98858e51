"""Bookings app package.

The booking ledger: one row per customer reservation on a departure.
Every write that changes a booking's occupancy goes through the slot
mutator in the same transaction, so the ledger and slot counts agree.
"""
