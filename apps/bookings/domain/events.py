"""
Booking Domain Events

Published by the unit of work only after the enclosing transaction commits.
"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass
class BookingConfirmed(DomainEvent):
    """
    Event: Payment succeeded for an existing booking

    Triggers:
    - Send booking confirmation email
    """
    booking_code: str = ''
    payment_intent_id: str = ''


@dataclass
class BookingReconstructed(DomainEvent):
    """
    Event: A paid booking was rebuilt from processor metadata

    Triggers:
    - Send booking confirmation email
    - Operator warning when the slot could not absorb the occupancy
    """
    booking_code: str = ''
    payment_intent_id: str = ''
    occupancy_committed: bool = True


@dataclass
class BookingCancelled(DomainEvent):
    """
    Event: Booking cancelled after a failed payment

    Triggers:
    - Audit log entry
    """
    booking_code: str = ''
    reason: str = ''
    released_occupancy: int = 0
