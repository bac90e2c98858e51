"""
Cart checkout.

Checkout books every cart item independently inside one transaction. Each
item gets its own savepoint, so a refused item is skipped without touching
its siblings. The transaction commits, and the cart is emptied, only when
at least one booking was created; otherwise everything is rolled back and
the cart is left as it was.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import DatabaseError, transaction  # type: ignore

from apps.bookings.models import Booking
from apps.bookings.services import (
    adjust_package_counter,
    ensure_minimum_occupancy,
    ensure_public_lead_time,
)
from apps.customers.models import Customer
from apps.customers.services import find_customer
from apps.notifications.services import send_booking_confirmation_email
from apps.timeslots import timeutils
from apps.timeslots.availability import check_availability
from apps.timeslots.services import ADD, update_slot_booking
from shared.application.uow import DjangoUnitOfWork
from shared.domain.errors import BookingRejected
from shared.domain.value_objects import Money

from .models import Cart, CartItem

logger = logging.getLogger(__name__)


class CartCheckoutError(Exception):
    """The customer or their cart could not be found; nothing was attempted."""


@dataclass
class ContactInfo:
    name: str
    email: str
    phone: str = ''
    whatsapp: str = ''


@dataclass
class CartCheckoutResult:
    success: bool = False
    booking_ids: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _load_cart(customer_email: str) -> tuple[Customer, Cart]:
    customer = find_customer(customer_email)
    if customer is None:
        raise CartCheckoutError(f"Customer not found: {customer_email}")
    cart = Cart.objects.filter(customer=customer).first()
    if cart is None or not cart.items.exists():
        raise CartCheckoutError("Cart is empty or not found.")
    return customer, cart


def _item_day(item: CartItem) -> str | None:
    try:
        return timeutils.normalize_date(item.date)
    except ValueError:
        return None


def _skip_reason(item: CartItem, customer: Customer, today: str) -> str | None:
    day = _item_day(item)
    if day is None:
        return f"Invalid date {item.date!r}. Skipping this item."
    if day < today:
        return f"Selected date ({day}) has already passed. Skipping this item."
    if item.package is None:
        return "Package no longer available. Skipping this item."
    try:
        label = timeutils.canonical_label(item.time)
    except ValueError:
        return f"Invalid departure time {item.time!r}. Skipping this item."
    duplicate = (
        Booking.objects.active()
        .for_slot(item.package_id, day, label)
        .filter(customer=customer)
        .exists()
    )
    if duplicate:
        return "You already have a booking for this date and time. Skipping this item."
    return None


def _book_item(item: CartItem, customer: Customer, contact: ContactInfo, checkout_session_id: str) -> Booking:
    package = item.package
    guests = item.adults + item.children
    day = timeutils.normalize_date(item.date)
    label = timeutils.canonical_label(item.time)
    occupancy = package.occupancy_for(item.adults, item.children)

    ensure_public_lead_time(day, label)
    availability = check_availability(package.package_type, package.pk, day, label, occupancy)
    if not availability.available:
        raise BookingRejected(availability.reason)
    ensure_minimum_occupancy(guests, availability.current_minimum)

    amount = Money(item.total_price, settings.DEFAULT_CURRENCY)
    booking = Booking.objects.create(
        package=package,
        package_type=package.package_type,
        package_title=package.title,
        customer=customer,
        date=day,
        time=label,
        adults=item.adults,
        children=item.children,
        occupancy=occupancy,
        occupancy_committed=True,
        contact_name=contact.name,
        contact_email=contact.email or customer.email,
        contact_phone=contact.phone,
        pickup_location=item.pickup_location or package.pickup_location,
        checkout_session_id=checkout_session_id,
        payment_status=Booking.PaymentStatus.PENDING,
        amount=amount.amount,
        bank_charge=amount.fee(settings.PROCESSING_FEE_RATE).amount,
        currency=amount.currency,
        status=Booking.Status.PENDING,
        source=Booking.Source.CART,
    )
    update_slot_booking(package.package_type, package.pk, day, label, occupancy, ADD)
    adjust_package_counter(package.pk, guests)
    return booking


def book_cart_items(
    customer_email: str,
    contact: ContactInfo,
    *,
    checkout_session_id: str = '',
) -> CartCheckoutResult:
    """
    Turn every bookable cart item into a pending booking.

    Raises:
        CartCheckoutError: unknown customer, or missing/empty cart
    """
    customer, cart = _load_cart(customer_email)
    result = CartCheckoutResult()
    created: list[Booking] = []
    today = timeutils.operating_today().isoformat()

    with DjangoUnitOfWork() as uow:
        for item in cart.items.select_related("package"):
            skip = _skip_reason(item, customer, today)
            if skip:
                result.warnings.append(f"{item.package_title}: {skip}")
                continue
            try:
                with transaction.atomic():
                    booking = _book_item(item, customer, contact, checkout_session_id)
            except BookingRejected as exc:
                result.warnings.append(f"{item.package_title}: {exc.detail} ({exc.reason.value}). Skipping this item.")
                continue
            except DatabaseError as e:
                logger.error(f"Error processing cart item {item.pk} ({item.package_title}): {e}", exc_info=True)
                result.errors.append(f"{item.package_title}: Failed to create booking")
                continue
            created.append(booking)
            result.booking_ids.append(booking.pk)

        if created:
            cart.items.all().delete()
            result.success = True
        else:
            result.errors.append("No bookings could be created from cart items")
            uow.rollback()

    logger.info(
        f"Cart checkout for {customer.email}: {len(created)} bookings, "
        f"{len(result.warnings)} warnings, {len(result.errors)} errors"
    )

    for booking in created:
        if not send_booking_confirmation_email(booking):
            result.warnings.append(f"Confirmation email for booking {booking.booking_code} could not be sent.")
    return result


def cart_summary(customer_email: str) -> dict:
    """Preview of what checkout would charge, counting only future items."""

    customer = find_customer(customer_email)
    if customer is None:
        raise CartCheckoutError(f"Customer not found: {customer_email}")

    today = timeutils.operating_today().isoformat()
    items: list[dict] = []
    total = Decimal("0.00")
    valid = expired = 0
    for item in CartItem.objects.filter(cart__customer=customer):
        day = _item_day(item)
        is_expired = day is None or day < today
        if is_expired:
            expired += 1
        else:
            valid += 1
            total += item.total_price
        items.append(
            {
                "id": item.pk,
                "package_type": item.package_type,
                "package_id": item.package_id,
                "package_title": item.package_title,
                "date": item.date,
                "time": item.time,
                "adults": item.adults,
                "children": item.children,
                "total_price": str(item.total_price),
                "is_expired": is_expired,
            }
        )

    subtotal = Money(total, settings.DEFAULT_CURRENCY)
    fee = subtotal.fee(settings.PROCESSING_FEE_RATE)
    return {
        "items": items,
        "valid_items": valid,
        "expired_items": expired,
        "total_amount": str(subtotal.amount),
        "bank_charge": str(fee.amount),
        "grand_total": str((subtotal + fee).amount),
        "currency": subtotal.currency,
    }
