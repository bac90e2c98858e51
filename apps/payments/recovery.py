"""Orphaned payment detection and recovery."""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking
from shared.domain.errors import BookingRejected

from .gateway import PaymentGatewayError, ProcessorPayment, StripeGateway, get_gateway
from .reconciliation import (
    PaymentSucceeded,
    find_bookings_for_payment,
    int_or_none,
    reconstruct_booking_from_payment,
)

logger = logging.getLogger(__name__)


def _linked_booking(payment: ProcessorPayment) -> Booking | None:
    return find_bookings_for_payment(
        int_or_none(payment.metadata.get("bookingId")),
        payment.id,
        payment.metadata.get("checkoutSessionId", ""),
    ).first()


def _booking_info(booking: Booking) -> dict:
    return {
        "id": booking.pk,
        "booking_code": booking.booking_code,
        "status": booking.status,
        "payment_status": booking.payment_status,
        "package_type": booking.package_type,
        "package_title": booking.package_title,
        "date": booking.date,
        "time": booking.time,
        "contact_email": booking.contact_email,
        "occupancy_committed": booking.occupancy_committed,
    }


def scan_orphaned_payments(hours: int = 24, limit: int = 50, gateway: StripeGateway | None = None) -> dict:
    """
    Report recent successful payments of this platform that have no booking.

    Payments tagged for other storefronts sharing the processor account are
    counted and skipped.
    """
    gateway = gateway or get_gateway()
    since = timezone.now() - timedelta(hours=hours)
    payments = gateway.list_succeeded_payments(since, limit)

    orphans: list[dict] = []
    other_platform = linked = 0
    for payment in payments:
        if payment.platform != settings.PAYMENT_PLATFORM_TAG:
            other_platform += 1
            continue
        if _linked_booking(payment) is not None:
            linked += 1
            continue
        orphans.append(
            {
                "payment_intent_id": payment.id,
                "amount": str(payment.amount),
                "currency": payment.currency,
                "created": payment.created.isoformat(),
                "customer_email": payment.metadata.get("customerEmail", ""),
                "package_type": payment.metadata.get("packageType", ""),
                "package_id": payment.metadata.get("packageId", ""),
                "booking_id": payment.metadata.get("bookingId", ""),
                "date": payment.metadata.get("date", ""),
                "time": payment.metadata.get("time", ""),
            }
        )

    if orphans:
        logger.warning(f"Orphan scan found {len(orphans)} paid payments without a booking")
    return {
        "scanned": len(payments),
        "other_platform": other_platform,
        "linked": linked,
        "orphaned": orphans,
    }


def recover_payment(payment_id: str, gateway: StripeGateway | None = None) -> dict:
    """Rebuild the booking of one orphaned payment."""

    gateway = gateway or get_gateway()
    try:
        payment = gateway.retrieve_payment(payment_id)
    except PaymentGatewayError as e:
        return {"payment_intent_id": payment_id, "success": False, "error": str(e)}

    if not payment.succeeded:
        return {
            "payment_intent_id": payment_id,
            "success": False,
            "error": f"Payment status is '{payment.status}', not 'succeeded'. Cannot recover.",
        }

    existing = _linked_booking(payment)
    if existing is not None:
        return {
            "payment_intent_id": payment_id,
            "success": True,
            "already_exists": True,
            "booking_id": existing.pk,
        }

    command = PaymentSucceeded(
        payment_id=payment.id,
        amount=payment.amount,
        currency=payment.currency,
        metadata=payment.metadata,
        session_id=payment.metadata.get("checkoutSessionId", ""),
    )
    try:
        booking, created = reconstruct_booking_from_payment(command)
    except BookingRejected as exc:
        logger.error(f"Recovery of payment {payment_id} failed: {exc}")
        return {
            "payment_intent_id": payment_id,
            "success": False,
            "reason": exc.reason.value,
            "error": exc.detail,
        }

    logger.info(f"Recovered payment {payment_id} as booking {booking.booking_code}")
    return {
        "payment_intent_id": payment_id,
        "success": True,
        "already_exists": not created,
        "booking_id": booking.pk,
        "booking_code": booking.booking_code,
        "occupancy_committed": booking.occupancy_committed,
    }


def batch_recover(payment_ids: list[str], gateway: StripeGateway | None = None) -> dict:
    gateway = gateway or get_gateway()
    results = [recover_payment(payment_id, gateway) for payment_id in payment_ids]
    recovered = sum(1 for result in results if result["success"])
    return {"results": results, "recovered": recovered, "failed": len(results) - recovered}


def describe_payment(payment_id: str, gateway: StripeGateway | None = None) -> dict:
    """Processor state, linked booking and an orphan diagnosis for one payment."""

    gateway = gateway or get_gateway()
    payment = gateway.retrieve_payment(payment_id)
    booking = _linked_booking(payment)
    orphaned = payment.succeeded and booking is None

    if orphaned:
        recommendation = "Payment is orphaned; recover it to create the booking."
    elif booking is not None:
        recommendation = "Payment and booking are linked."
    else:
        recommendation = "Payment has not succeeded; nothing to recover."

    return {
        "payment": payment.to_dict(),
        "booking": _booking_info(booking) if booking else None,
        "analysis": {
            "has_booking": booking is not None,
            "payment_succeeded": payment.succeeded,
            "is_orphaned": orphaned,
            "can_recover": orphaned,
            "other_platform": payment.platform != settings.PAYMENT_PLATFORM_TAG,
            "recommendation": recommendation,
        },
    }
