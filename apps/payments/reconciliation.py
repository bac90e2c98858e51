"""
Payment reconciliation.

Turns processor payment events into booking state. A booking is located by
booking id, then payment id, then checkout session id. State changes are
conditional updates, so a duplicated or replayed event changes nothing the
second time.

When no booking exists for a successful payment but its metadata describes
one, the booking is rebuilt by ``reconstruct_booking_from_payment``. That
path deliberately skips the blackout, cutoff and minimum-occupancy rules:
the money has already been taken.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.events import BookingCancelled, BookingConfirmed, BookingReconstructed
from apps.bookings.models import Booking
from apps.bookings.services import adjust_package_counter, release_booking_occupancy
from apps.catalog.services import get_package
from apps.customers.services import find_or_create_customer
from apps.timeslots import timeutils
from apps.timeslots.services import ADD, update_slot_booking
from shared.application.uow import DjangoUnitOfWork
from shared.domain.errors import BookingRejected, RejectionReason

logger = logging.getLogger(__name__)


def int_or_none(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class BookingMetadata:
    """Booking details the storefront attaches to a payment."""
    package_type: str
    package_id: int
    date: str
    time: str
    adults: int
    children: int
    contact_email: str
    contact_name: str = ''
    contact_phone: str = ''
    pickup_location: str = ''

    @classmethod
    def from_metadata(cls, metadata: dict) -> "BookingMetadata | None":
        """Parse processor metadata; ``None`` when it cannot describe a booking."""

        def pick(*keys):
            for key in keys:
                if metadata.get(key) not in (None, ""):
                    return metadata[key]
            return None

        package_id = int_or_none(pick("packageId", "package_id"))
        adults = int_or_none(pick("adults")) or 0
        children = int_or_none(pick("children")) or 0
        if adults + children == 0:
            adults = int_or_none(pick("totalGuests", "total_guests")) or 0
        fields = {
            "package_type": pick("packageType", "package_type"),
            "date": pick("date"),
            "time": pick("time"),
            "contact_email": pick("customerEmail", "customer_email", "email"),
        }
        if package_id is None or adults + children < 1 or not all(fields.values()):
            return None
        return cls(
            package_id=package_id,
            adults=adults,
            children=children,
            contact_name=pick("customerName", "customer_name") or "",
            contact_phone=pick("customerPhone", "customer_phone") or "",
            pickup_location=pick("pickupLocation", "pickup_location") or "",
            **fields,
        )


@dataclass
class PaymentSucceeded:
    payment_id: str
    amount: Decimal
    currency: str
    metadata: dict = field(default_factory=dict)
    booking_id: int | None = None
    session_id: str = ''


@dataclass
class PaymentFailed:
    payment_id: str
    reason: str = ''
    booking_id: int | None = None
    session_id: str = ''


@dataclass
class ReconciliationOutcome:
    action: str
    booking_ids: list[int] = field(default_factory=list)
    detail: str = ''

    def to_dict(self) -> dict:
        return asdict(self)


def paid_by_other_payment(payment_id: str) -> Q:
    """Bookings already settled by a different payment intent."""
    return (
        Q(payment_status=Booking.PaymentStatus.SUCCEEDED)
        & Q(payment_intent_id__isnull=False)
        & ~Q(payment_intent_id="")
        & ~Q(payment_intent_id=payment_id)
    )


def find_bookings_for_payment(booking_id=None, payment_id: str = '', session_id: str = ''):
    """
    Bookings a payment refers to, by booking id, payment id, then session id.

    A booking named by id that another payment already settled does not
    belong to this payment.
    """

    if booking_id is not None:
        by_id = Booking.objects.filter(pk=booking_id)
        if payment_id:
            by_id = by_id.exclude(paid_by_other_payment(payment_id))
        if by_id.exists():
            return by_id
    if payment_id:
        by_payment = Booking.objects.filter(payment_intent_id=payment_id)
        if by_payment.exists():
            return by_payment
    if session_id:
        by_session = Booking.objects.filter(checkout_session_id=session_id)
        if by_session.exists():
            return by_session
    return Booking.objects.none()


def _commit_occupancy(booking: Booking) -> bool:
    """Best-effort slot claim for a paid booking that holds no occupancy."""

    if booking.occupancy_committed or not booking.occupancy or not booking.package_id:
        return booking.occupancy_committed
    try:
        with transaction.atomic():
            update_slot_booking(
                booking.package_type,
                booking.package_id,
                booking.date,
                booking.time,
                booking.occupancy,
                ADD,
            )
    except BookingRejected as exc:
        logger.warning(
            f"Paid booking {booking.booking_code} could not claim slot occupancy "
            f"({exc.reason.value}); operator follow-up required"
        )
        return False
    Booking.objects.filter(pk=booking.pk).update(occupancy_committed=True)
    return True


# ============================================================================
# SUCCESS
# ============================================================================

def handle_payment_succeeded(command: PaymentSucceeded) -> ReconciliationOutcome:
    booking_id = command.booking_id or int_or_none(command.metadata.get("bookingId"))
    session_id = command.session_id or command.metadata.get("checkoutSessionId", "")

    with DjangoUnitOfWork() as uow:
        matches = find_bookings_for_payment(booking_id, command.payment_id, session_id)
        matched_ids = list(matches.values_list("pk", flat=True))
        if not matched_ids:
            settled = (
                Booking.objects.filter(pk=booking_id).values_list("booking_code", "payment_intent_id").first()
                if booking_id is not None
                else None
            )
            if settled is not None:
                logger.warning(
                    f"Payment {command.payment_id} names booking {settled[0]} which payment {settled[1]} "
                    f"already settled; left for orphan recovery"
                )
                return ReconciliationOutcome(
                    RejectionReason.DUPLICATE_PAYMENT.value,
                    detail=f"Booking {booking_id} is already paid by {settled[1]}.",
                )
            metadata = BookingMetadata.from_metadata(command.metadata)
            if metadata is None:
                logger.warning(
                    f"Payment {command.payment_id} matches no booking and carries no usable "
                    f"metadata; left for orphan recovery"
                )
                return ReconciliationOutcome("unmatched", detail="No booking and insufficient metadata.")
            booking, created = reconstruct_booking_from_payment(command)
            return ReconciliationOutcome("reconstructed" if created else "already_processed", [booking.pk])

        pending = list(matches.exclude(payment_status=Booking.PaymentStatus.SUCCEEDED))
        if not pending:
            logger.info(f"Payment {command.payment_id} already reconciled for bookings {matched_ids}")
            return ReconciliationOutcome("already_processed", matched_ids)

        now = timezone.now()
        stamp_payment = bool(command.payment_id) and len(matched_ids) == 1 and not Booking.objects.filter(
            payment_intent_id=command.payment_id
        ).exists()
        confirmed: list[int] = []
        for booking in pending:
            changes = {
                "payment_status": Booking.PaymentStatus.SUCCEEDED,
                "status": Booking.Status.CONFIRMED,
                "reconciled_at": now,
                "failure_reason": "",
            }
            if stamp_payment and booking.payment_intent_id != command.payment_id:
                changes["payment_intent_id"] = command.payment_id
            updated = (
                Booking.objects.filter(pk=booking.pk)
                .exclude(payment_status=Booking.PaymentStatus.SUCCEEDED)
                .update(**changes)
            )
            if not updated:
                continue
            if booking.status == Booking.Status.CANCELLED:
                _commit_occupancy(booking)
                adjust_package_counter(booking.package_id, booking.total_guests)
            confirmed.append(booking.pk)
            uow.add_event(
                BookingConfirmed(
                    aggregate_id=booking.pk,
                    booking_code=booking.booking_code,
                    payment_intent_id=command.payment_id,
                )
            )

    logger.info(f"Payment {command.payment_id} confirmed bookings {confirmed}")
    return ReconciliationOutcome("confirmed" if confirmed else "already_processed", confirmed or matched_ids)


def reconstruct_booking_from_payment(command: PaymentSucceeded) -> tuple[Booking, bool]:
    """
    Create a confirmed booking purely from payment metadata.

    Availability rules are not consulted. The slot claim is attempted but a
    full slot only produces a warning and an ``occupancy_committed=False``
    booking. A concurrent duplicate for the same payment id resolves to the
    existing booking through the unique constraint.

    Returns ``(booking, created)``.
    """
    metadata = BookingMetadata.from_metadata(command.metadata)
    if metadata is None:
        raise BookingRejected(
            RejectionReason.VALIDATION_ERROR,
            f"Payment {command.payment_id} metadata cannot describe a booking.",
        )
    package = get_package(metadata.package_type, metadata.package_id)
    try:
        day = timeutils.normalize_date(metadata.date)
        label = timeutils.canonical_label(metadata.time)
    except ValueError as exc:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, str(exc))

    customer = find_or_create_customer(
        metadata.contact_email,
        name=metadata.contact_name,
        phone=metadata.contact_phone,
    )
    occupancy = package.occupancy_for(metadata.adults, metadata.children)

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
                    adults=metadata.adults,
                    children=metadata.children,
                    occupancy=occupancy,
                    occupancy_committed=False,
                    contact_name=metadata.contact_name,
                    contact_email=customer.email,
                    contact_phone=metadata.contact_phone,
                    pickup_location=metadata.pickup_location or package.pickup_location,
                    payment_intent_id=command.payment_id,
                    checkout_session_id=command.session_id,
                    payment_status=Booking.PaymentStatus.SUCCEEDED,
                    amount=command.amount,
                    currency=(command.currency or settings.DEFAULT_CURRENCY).upper(),
                    status=Booking.Status.CONFIRMED,
                    reconciled_at=timezone.now(),
                    source=Booking.Source.RECONSTRUCTED,
                )
        except IntegrityError:
            existing = Booking.objects.filter(payment_intent_id=command.payment_id).first()
            if existing is None:
                raise
            logger.info(f"Payment {command.payment_id} already has booking {existing.booking_code}")
            return existing, False

        committed = _commit_occupancy(booking)
        booking.occupancy_committed = committed
        adjust_package_counter(package.pk, booking.total_guests)
        uow.add_event(
            BookingReconstructed(
                aggregate_id=booking.pk,
                booking_code=booking.booking_code,
                payment_intent_id=command.payment_id,
                occupancy_committed=committed,
            )
        )

    logger.info(
        f"Reconstructed booking {booking.booking_code} from payment {command.payment_id} "
        f"({package.package_type} {package.pk} {day} {label}, occupancy committed: {committed})"
    )
    return booking, True


# ============================================================================
# FAILURE
# ============================================================================

def handle_payment_failed(command: PaymentFailed) -> ReconciliationOutcome:
    with DjangoUnitOfWork() as uow:
        matches = find_bookings_for_payment(command.booking_id, command.payment_id, command.session_id)
        bookings = list(matches)
        if not bookings:
            logger.info(f"Failed payment {command.payment_id} matches no booking")
            return ReconciliationOutcome("unmatched")

        cancelled: list[int] = []
        for booking in bookings:
            updated = (
                Booking.objects.filter(pk=booking.pk, status__in=Booking.ACTIVE_STATUSES)
                .exclude(payment_status=Booking.PaymentStatus.SUCCEEDED)
                .update(
                    payment_status=Booking.PaymentStatus.FAILED,
                    status=Booking.Status.CANCELLED,
                    failure_reason=command.reason,
                )
            )
            if not updated:
                logger.info(
                    f"Failed payment {command.payment_id} ignored for booking {booking.booking_code} "
                    f"({booking.status}/{booking.payment_status})"
                )
                continue
            released = release_booking_occupancy(booking)
            adjust_package_counter(booking.package_id, -booking.total_guests)
            cancelled.append(booking.pk)
            uow.add_event(
                BookingCancelled(
                    aggregate_id=booking.pk,
                    booking_code=booking.booking_code,
                    reason=command.reason,
                    released_occupancy=released,
                )
            )

    return ReconciliationOutcome("cancelled" if cancelled else "ignored", cancelled)


# ============================================================================
# PROCESSOR EVENTS
# ============================================================================

SUCCEEDED_EVENTS = ("payment_intent.succeeded", "checkout.session.completed")
FAILED_EVENTS = ("payment_intent.payment_failed", "payment_intent.canceled")
HANDLED_EVENTS = SUCCEEDED_EVENTS + FAILED_EVENTS


def command_from_event(event_type: str, payload: dict) -> PaymentSucceeded | PaymentFailed:
    """Translate a Stripe event body into a reconciliation command."""

    obj = (payload.get("data") or {}).get("object") or {}
    metadata = dict(obj.get("metadata") or {})
    booking_id = int_or_none(metadata.get("bookingId"))

    if event_type == "checkout.session.completed":
        return PaymentSucceeded(
            payment_id=obj.get("payment_intent") or "",
            amount=Decimal(obj.get("amount_total") or 0) / 100,
            currency=obj.get("currency") or "",
            metadata=metadata,
            booking_id=booking_id,
            session_id=obj.get("id", ""),
        )
    if event_type == "payment_intent.succeeded":
        return PaymentSucceeded(
            payment_id=obj["id"],
            amount=Decimal(obj.get("amount_received") or obj.get("amount") or 0) / 100,
            currency=obj.get("currency") or "",
            metadata=metadata,
            booking_id=booking_id,
            session_id=metadata.get("checkoutSessionId", ""),
        )
    if event_type in FAILED_EVENTS:
        error = obj.get("last_payment_error") or {}
        return PaymentFailed(
            payment_id=obj["id"],
            reason=error.get("message") or obj.get("cancellation_reason") or event_type,
            booking_id=booking_id,
            session_id=metadata.get("checkoutSessionId", ""),
        )
    raise ValueError(f"Unhandled payment event type {event_type!r}")


def reconcile_event(event_type: str, payload: dict) -> ReconciliationOutcome:
    command = command_from_event(event_type, payload)
    if isinstance(command, PaymentSucceeded):
        return handle_payment_succeeded(command)
    return handle_payment_failed(command)
