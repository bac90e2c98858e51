"""Catalog app package.

Read-only view of the tour and transfer packages that the booking engine
needs: per-slot capacity, minimum/maximum persons, shared versus private
category and departure times. Also hosts the blackout registry of
(date, package type) pairs that are closed for booking.
"""
