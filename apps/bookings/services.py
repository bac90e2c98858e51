"""Domain services for the booking ledger lifecycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import DatabaseError, IntegrityError, transaction  # type: ignore
from django.db.models import F, Q, Value  # type: ignore
from django.db.models.functions import Greatest  # type: ignore
from django.utils import timezone  # type: ignore

from apps.catalog.models import Package
from apps.catalog.services import get_package
from apps.customers.services import find_or_create_customer
from apps.payments.gateway import PaymentGatewayError, get_gateway
from apps.timeslots import timeutils
from apps.timeslots.availability import check_availability
from apps.timeslots.services import ADD, SUBTRACT, update_slot_booking
from shared.application.uow import DjangoUnitOfWork
from shared.domain.errors import BookingRejected, RejectionReason
from shared.domain.value_objects import Money

from .domain.events import BookingConfirmed
from .models import Booking

logger = logging.getLogger(__name__)


@dataclass
class CreateBookingCommand:
    """Everything needed to book one departure."""
    package_type: str
    package_id: int
    date: str
    time: str
    adults: int
    contact_email: str
    children: int = 0
    contact_name: str = ''
    contact_phone: str = ''
    pickup_location: str = ''
    special_requests: str = ''
    payment_intent_id: str | None = None
    payment_status: str = Booking.PaymentStatus.PENDING
    amount: Decimal | None = None
    currency: str | None = None
    source: str = Booking.Source.PUBLIC


# ============================================================================
# HELPERS
# ============================================================================

def validate_guest_counts(package: Package, adults: int, children: int) -> None:
    if adults < 0 or children < 0:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, "Guest counts must not be negative.")
    if adults + children < 1:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, "At least one guest is required.")
    if package.maximum_person and adults + children > package.maximum_person:
        raise BookingRejected(
            RejectionReason.VALIDATION_ERROR,
            f"At most {package.maximum_person} guests per booking.",
        )


def quote_price(package: Package, adults: int, children: int, currency: str | None = None) -> tuple[Money, Money]:
    """Return (amount, processing fee). Private packages are priced per vehicle."""

    currency = currency or settings.DEFAULT_CURRENCY
    if package.is_private:
        amount = Money(package.adult_price, currency)
    else:
        amount = Money(package.adult_price, currency) * adults + Money(package.child_price, currency) * children
    return amount, amount.fee(settings.PROCESSING_FEE_RATE)


def ensure_public_lead_time(date: str, time: str, now: datetime | None = None) -> None:
    """Self-service bookings must be made a fixed number of hours ahead."""

    now = now or timeutils.operating_now()
    lead = timedelta(hours=settings.PUBLIC_BOOKING_LEAD_HOURS)
    if timeutils.departure_instant(date, time) - now < lead:
        raise BookingRejected(
            RejectionReason.CUTOFF,
            f"Online bookings close {settings.PUBLIC_BOOKING_LEAD_HOURS} hours before departure.",
        )


def adjust_package_counter(package_id, guests: int) -> None:
    """Move the package's aggregate guest counter, never below zero."""
    if not package_id or not guests:
        return
    Package.objects.filter(pk=package_id).update(booked_count=Greatest(F("booked_count") + guests, Value(0)))


def verified_payment_status(payment_intent_id: str, amount: Money) -> str:
    """
    Payment status of a client-supplied payment intent, as the processor
    reports it.

    Only a succeeded intent that covers ``amount`` counts as paid. An
    unreachable processor leaves the booking pending for the webhook to
    settle.
    """
    try:
        payment = get_gateway().retrieve_payment(payment_intent_id)
    except PaymentGatewayError as e:
        logger.warning(f"Could not verify payment {payment_intent_id}: {e}")
        return Booking.PaymentStatus.PENDING

    if payment.succeeded:
        if payment.amount >= amount.amount:
            return Booking.PaymentStatus.SUCCEEDED
        logger.warning(
            f"Payment {payment_intent_id} of {payment.amount} {payment.currency} does not cover "
            f"{amount.amount} {amount.currency}"
        )
        return Booking.PaymentStatus.PENDING
    if payment.status == "processing":
        return Booking.PaymentStatus.PROCESSING
    return Booking.PaymentStatus.PENDING


def ensure_minimum_occupancy(guests: int, current_minimum: int) -> None:
    if guests < current_minimum:
        raise BookingRejected(
            RejectionReason.MINIMUM_OCCUPANCY_NOT_MET,
            f"This departure needs at least {current_minimum} guests.",
        )


# ============================================================================
# LIFECYCLE
# ============================================================================

def create_booking_direct(
    command: CreateBookingCommand,
    *,
    enforce_lead_time: bool = False,
    verify_payment: bool = False,
) -> Booking:
    """
    Create a booking through the normal validated path.

    With ``verify_payment`` the payment status comes from the processor
    rather than the command.

    The booking row, the slot occupancy and the package counter are written
    in one transaction; if the slot guard refuses, nothing is kept.
    """
    package = get_package(command.package_type, command.package_id)
    validate_guest_counts(package, command.adults, command.children)
    try:
        day = timeutils.normalize_date(command.date)
        label = timeutils.canonical_label(command.time)
    except ValueError as exc:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, str(exc))

    if enforce_lead_time:
        ensure_public_lead_time(day, label)

    guests = command.adults + command.children
    occupancy = package.occupancy_for(command.adults, command.children)
    result = check_availability(package.package_type, package.pk, day, label, occupancy)
    if not result.available:
        raise BookingRejected(result.reason)
    ensure_minimum_occupancy(guests, result.current_minimum)

    customer = find_or_create_customer(
        command.contact_email,
        name=command.contact_name,
        phone=command.contact_phone,
    )
    if command.amount is None:
        amount, fee = quote_price(package, command.adults, command.children, command.currency)
    else:
        amount = Money(Decimal(command.amount), command.currency or settings.DEFAULT_CURRENCY)
        fee = Money(Decimal("0"), amount.currency)
    payment_status = command.payment_status
    if verify_payment:
        payment_status = (
            verified_payment_status(command.payment_intent_id, amount)
            if command.payment_intent_id
            else Booking.PaymentStatus.PENDING
        )
    paid = payment_status == Booking.PaymentStatus.SUCCEEDED

    with DjangoUnitOfWork() as uow:
        try:
            with transaction.atomic():
                booking = Booking.objects.create(
                    package=package,
                    package_type=package.package_type,
                    package_title=package.title,
                    customer=customer,
                    date=day,
                    time=label,
                    adults=command.adults,
                    children=command.children,
                    occupancy=occupancy,
                    occupancy_committed=True,
                    contact_name=command.contact_name,
                    contact_email=customer.email,
                    contact_phone=command.contact_phone,
                    pickup_location=command.pickup_location or package.pickup_location,
                    special_requests=command.special_requests,
                    payment_intent_id=command.payment_intent_id,
                    payment_status=payment_status,
                    amount=amount.amount,
                    bank_charge=fee.amount,
                    currency=amount.currency,
                    status=Booking.Status.CONFIRMED if paid else Booking.Status.PENDING,
                    reconciled_at=timezone.now() if paid else None,
                    source=command.source,
                )
        except IntegrityError:
            if command.payment_intent_id and Booking.objects.filter(
                payment_intent_id=command.payment_intent_id
            ).exists():
                raise BookingRejected(
                    RejectionReason.DUPLICATE_PAYMENT,
                    f"Payment {command.payment_intent_id} already has a booking.",
                )
            raise

        update_slot_booking(package.package_type, package.pk, day, label, occupancy, ADD)
        adjust_package_counter(package.pk, guests)
        if paid:
            uow.add_event(
                BookingConfirmed(
                    aggregate_id=booking.pk,
                    booking_code=booking.booking_code,
                    payment_intent_id=booking.payment_intent_id or '',
                )
            )

    logger.info(
        f"Booking {booking.booking_code} created ({booking.source}, {booking.status}) "
        f"on {package.package_type} {package.pk} {day} {label} for {guests} guests"
    )
    return booking


def create_public_booking(command: CreateBookingCommand) -> Booking:
    """Self-service entry point: adds the lead-time cutoff."""
    command.source = Booking.Source.PUBLIC
    return create_booking_direct(command, enforce_lead_time=True, verify_payment=True)


def update_booking_guests(booking_id, adults: int, children: int) -> Booking:
    """
    Change guest counts; the slot must accept the delta first.

    Guest counts are only saved after the slot mutator accepted the new
    occupancy, inside the same transaction.
    """
    with transaction.atomic():
        booking = Booking.objects.select_for_update().select_related("package").get(pk=booking_id)
        if not booking.is_active:
            raise BookingRejected(
                RejectionReason.VALIDATION_ERROR,
                f"Booking {booking.booking_code} is {booking.status} and cannot be changed.",
            )
        if booking.package is None:
            raise BookingRejected(RejectionReason.PACKAGE_NOT_FOUND, "The booked package no longer exists.")
        package = booking.package
        validate_guest_counts(package, adults, children)

        new_occupancy = package.occupancy_for(adults, children)
        committed = booking.occupancy_committed
        if committed:
            delta = new_occupancy - booking.occupancy
        elif new_occupancy > booking.occupancy:
            # Growing an unclaimed booking must claim its whole occupancy
            delta = new_occupancy
            committed = True
        else:
            delta = 0
        if delta > 0:
            update_slot_booking(booking.package_type, package.pk, booking.date, booking.time, delta, ADD)
        elif delta < 0:
            update_slot_booking(booking.package_type, package.pk, booking.date, booking.time, -delta, SUBTRACT)

        adjust_package_counter(package.pk, adults + children - booking.total_guests)
        booking.adults = adults
        booking.children = children
        booking.occupancy = new_occupancy
        booking.occupancy_committed = committed
        booking.save(update_fields=["adults", "children", "occupancy", "occupancy_committed", "updated_at"])

    logger.info(f"Booking {booking.booking_code} guests changed to {adults}+{children}")
    return booking


def confirm_payment(booking_id, payment_intent_id: str | None = None) -> Booking:
    """Mark a booking paid and confirmed. Confirming twice is a no-op."""

    with DjangoUnitOfWork() as uow:
        booking = Booking.objects.get(pk=booking_id)
        if booking.status == Booking.Status.CANCELLED:
            raise BookingRejected(
                RejectionReason.VALIDATION_ERROR,
                f"Booking {booking.booking_code} is cancelled.",
            )

        changes = {
            "status": Booking.Status.CONFIRMED,
            "payment_status": Booking.PaymentStatus.SUCCEEDED,
            "reconciled_at": timezone.now(),
        }
        if payment_intent_id and not booking.payment_intent_id:
            changes["payment_intent_id"] = payment_intent_id
        updated = (
            Booking.objects.filter(pk=booking.pk)
            .filter(
                Q(status=Booking.Status.PENDING)
                | (Q(status=Booking.Status.CONFIRMED) & ~Q(payment_status=Booking.PaymentStatus.SUCCEEDED))
            )
            .update(**changes)
        )
        if updated:
            uow.add_event(
                BookingConfirmed(
                    aggregate_id=booking.pk,
                    booking_code=booking.booking_code,
                    payment_intent_id=changes.get("payment_intent_id", booking.payment_intent_id) or '',
                )
            )
            logger.info(f"Booking {booking.booking_code} payment confirmed")

    booking.refresh_from_db()
    return booking


def release_booking_occupancy(booking: Booking) -> int:
    """
    Give a booking's committed occupancy back to its slot.

    Returns the number of units released; a failed reversal is logged and
    reported as zero.
    """
    if not (booking.occupancy_committed and booking.occupancy and booking.package_id):
        return 0
    try:
        with transaction.atomic():
            update_slot_booking(
                booking.package_type,
                booking.package_id,
                booking.date,
                booking.time,
                booking.occupancy,
                SUBTRACT,
            )
    except (BookingRejected, DatabaseError) as e:
        logger.warning(f"Could not release slot occupancy of booking {booking.booking_code}: {e}")
        return 0
    Booking.objects.filter(pk=booking.pk).update(occupancy_committed=False)
    booking.occupancy_committed = False
    return booking.occupancy


def delete_booking(booking_id) -> None:
    """Administrative hard delete that also reverses capacity accounting."""

    with transaction.atomic():
        booking = Booking.objects.select_for_update().get(pk=booking_id)
        released = release_booking_occupancy(booking)
        if booking.status != Booking.Status.CANCELLED:
            adjust_package_counter(booking.package_id, -booking.total_guests)
        code = booking.booking_code
        booking.delete()

    logger.info(f"Booking {code} deleted by administrator, released {released} slot units")


def complete_elapsed_bookings(today: str | None = None) -> int:
    """Flip confirmed bookings whose day is over to completed."""

    today = today or timeutils.operating_today().isoformat()
    completed = Booking.objects.filter(status=Booking.Status.CONFIRMED, date__lt=today).update(
        status=Booking.Status.COMPLETED,
        updated_at=timezone.now(),
    )
    if completed:
        logger.info(f"Completed {completed} bookings dated before {today}")
    return completed
