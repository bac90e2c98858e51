"""Stripe access for reconciliation and recovery."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from itertools import islice

import stripe  # type: ignore
from django.conf import settings  # type: ignore


logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """The processor could not be reached or rejected the request."""


@dataclass(frozen=True)
class ProcessorPayment:
    """A payment as the processor currently reports it."""
    id: str
    status: str
    amount: Decimal
    currency: str
    created: datetime
    metadata: dict = field(default_factory=dict)
    last_error: str = ''

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"

    @property
    def platform(self) -> str:
        return self.metadata.get("platform", "")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "amount": str(self.amount),
            "currency": self.currency,
            "created": self.created.isoformat(),
            "metadata": self.metadata,
            "last_error": self.last_error,
        }


class StripeGateway:
    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET

    @staticmethod
    def _to_payment(intent) -> ProcessorPayment:
        error = getattr(intent, "last_payment_error", None)
        minor = getattr(intent, "amount_received", None) or intent.amount
        return ProcessorPayment(
            id=intent.id,
            status=intent.status,
            amount=Decimal(minor) / 100,
            currency=intent.currency.upper(),
            created=datetime.fromtimestamp(intent.created, tz=dt_timezone.utc),
            metadata=dict(intent.metadata or {}),
            last_error=getattr(error, "message", "") if error else "",
        )

    def retrieve_payment(self, payment_id: str) -> ProcessorPayment:
        try:
            intent = stripe.PaymentIntent.retrieve(payment_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe retrieve failed for {payment_id}: {e}")
            raise PaymentGatewayError(str(e)) from e
        return self._to_payment(intent)

    def list_succeeded_payments(self, since: datetime, limit: int) -> list[ProcessorPayment]:
        """Successful payments created at or after ``since``, newest first."""
        try:
            page = stripe.PaymentIntent.list(
                created={"gte": int(since.timestamp())},
                limit=min(limit, 100),
                api_key=self.api_key,
            )
            intents = list(islice(page.auto_paging_iter(), limit))
        except stripe.StripeError as e:
            logger.error(f"Stripe list failed: {e}")
            raise PaymentGatewayError(str(e)) from e
        return [self._to_payment(intent) for intent in intents if intent.status == "succeeded"]

    def verify_webhook(self, payload: bytes, signature: str) -> dict:
        """Check the signature header and return the decoded event."""
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise PaymentGatewayError(f"Invalid webhook: {e}") from e
        return json.loads(payload)


def get_gateway() -> StripeGateway:
    return StripeGateway()
