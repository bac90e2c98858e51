"""Customer identity lookups."""

from __future__ import annotations

import logging

from shared.domain.errors import BookingRejected, RejectionReason

from .models import Customer

logger = logging.getLogger(__name__)


def find_customer(email: str) -> Customer | None:
    return Customer.objects.filter(email=Customer.normalize_email(email)).first()


def find_or_create_customer(email: str, *, name: str = "", phone: str = "") -> Customer:
    """Return the customer for ``email``, creating a minimal record if needed."""

    normalized = Customer.normalize_email(email)
    if not normalized:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, "Customer email is required.")

    customer, created = Customer.objects.get_or_create(
        email=normalized,
        defaults={"name": name or "", "phone": Customer.normalize_phone(phone)},
    )
    if created:
        logger.info(f"Created customer record for {normalized}")
    return customer
