"""
Booking rejection taxonomy

Every refusal of a booking attempt carries exactly one reason from this
taxonomy. Public endpoints surface the reason verbatim.
"""

from enum import Enum


class RejectionReason(str, Enum):
    BLACKOUT = 'blackout'
    CUTOFF = 'cutoff'
    NO_SLOT = 'no_slot'
    INSUFFICIENT_CAPACITY = 'insufficient_capacity'
    MINIMUM_OCCUPANCY_NOT_MET = 'minimum_occupancy_not_met'
    PACKAGE_NOT_FOUND = 'package_not_found'
    DUPLICATE_PAYMENT = 'duplicate_payment'
    TRANSIENT_STORE_ERROR = 'transient_store_error'
    VALIDATION_ERROR = 'validation_error'


class BookingRejected(Exception):
    """Raised when a booking attempt or slot mutation is refused."""

    def __init__(self, reason: RejectionReason, detail: str = ''):
        self.reason = RejectionReason(reason)
        self.detail = detail or self.reason.value.replace('_', ' ')
        super().__init__(f"{self.reason.value}: {self.detail}")
