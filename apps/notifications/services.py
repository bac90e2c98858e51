"""Notification services for booking emails."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, message: str) -> bool:
    """
    Send one plain-text email.

    Args:
        recipient_email: Recipient address
        subject: Subject line
        message: Plain-text body

    Returns:
        bool: True if the backend accepted the message
    """
    if not recipient_email:
        logger.warning(f"Email '{subject}' skipped: no recipient")
        return False
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def send_booking_confirmation_email(booking: "Booking") -> bool:
    """Booking confirmation for the contact on the booking."""

    summary = booking.summary()
    subject = f"Booking #{summary['booking_code']} received"
    guests = f"{summary['adults']} adult(s)"
    if summary["children"]:
        guests += f", {summary['children']} child(ren)"

    lines = [
        f"Hello {summary['contact_name'] or 'there'},",
        "",
        f"Thank you for booking {summary['package_title']}.",
        "",
        f"Booking code: {summary['booking_code']}",
        f"Departure: {summary['date']} at {summary['time']}",
        f"Guests: {guests}",
    ]
    if summary["pickup_location"]:
        lines.append(f"Pickup: {summary['pickup_location']}")
    lines += [
        f"Total: {summary['total']}",
        f"Status: {summary['status']}",
    ]

    return send_email_notification(summary["contact_email"], subject, "\n".join(lines))
