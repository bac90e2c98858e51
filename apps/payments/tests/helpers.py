"""Fixtures for payment tests."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from apps.catalog.tests.factories import IN_TWO_DAYS
from apps.payments.gateway import PaymentGatewayError, ProcessorPayment


def booking_metadata(package, **overrides) -> dict:
    """Metadata the storefront attaches to a payment intent."""
    metadata = {
        "platform": "tourdesk",
        "packageId": str(package.pk),
        "packageType": package.package_type,
        "date": IN_TWO_DAYS,
        "time": "08:00 AM",
        "adults": "2",
        "children": "1",
        "customerEmail": "paid@example.com",
        "customerName": "Paid Guest",
    }
    metadata.update(overrides)
    return metadata


def processor_payment(payment_id: str, metadata: dict, status: str = "succeeded", amount: str = "257.00"):
    return ProcessorPayment(
        id=payment_id,
        status=status,
        amount=Decimal(amount),
        currency="MYR",
        created=datetime(2030, 3, 10, 0, 30, tzinfo=timezone.utc),
        metadata=metadata,
    )


class FakeGateway:
    """In-memory stand-in for the Stripe gateway."""

    def __init__(self, *payments: ProcessorPayment):
        self.payments = {payment.id: payment for payment in payments}
        self.listed_since = None

    def retrieve_payment(self, payment_id: str) -> ProcessorPayment:
        try:
            return self.payments[payment_id]
        except KeyError:
            raise PaymentGatewayError(f"No such payment_intent: '{payment_id}'")

    def list_succeeded_payments(self, since, limit):
        self.listed_since = since
        return [payment for payment in self.payments.values() if payment.succeeded][:limit]
