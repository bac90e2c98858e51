"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.notifications.services import send_booking_confirmation_email

from .models import Booking
from .services import complete_elapsed_bookings

logger = logging.getLogger(__name__)


@shared_task(name="bookings.send_booking_confirmation")
def send_booking_confirmation(booking_id: int) -> bool:
    """Best-effort confirmation email; a failure never touches the booking."""

    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        logger.warning(f"Confirmation skipped: booking {booking_id} not found")
        return False
    return send_booking_confirmation_email(booking)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.complete_past_bookings")
def complete_past_bookings() -> dict[str, int]:
    """
    Mark confirmed bookings as completed once their day has passed.

    Runs daily shortly after midnight in the operating timezone.

    Returns:
        dict: {"completed": number of bookings completed}
    """
    return {"completed": complete_elapsed_bookings()}
