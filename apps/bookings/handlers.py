"""Message bus handlers for booking events."""

from __future__ import annotations

import logging

from .domain.events import BookingCancelled, BookingConfirmed, BookingReconstructed

logger = logging.getLogger(__name__)


def dispatch_confirmation_email(event: BookingConfirmed | BookingReconstructed) -> None:
    from .tasks import send_booking_confirmation

    send_booking_confirmation.delay(event.aggregate_id)


def flag_uncommitted_occupancy(event: BookingReconstructed) -> None:
    if event.occupancy_committed:
        return
    logger.warning(
        f"Booking {event.booking_code} (payment {event.payment_intent_id}) was created "
        f"without slot occupancy; operator follow-up required"
    )


def log_cancellation(event: BookingCancelled) -> None:
    logger.info(
        f"Booking {event.booking_code} cancelled: {event.reason or 'no reason'}; "
        f"released {event.released_occupancy} slot units"
    )
