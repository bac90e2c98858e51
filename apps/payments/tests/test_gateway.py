from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import stripe
from django.test import SimpleTestCase

from apps.payments.gateway import PaymentGatewayError, StripeGateway


def fake_intent(**overrides):
    values = {
        "id": "pi_1",
        "status": "succeeded",
        "amount": 25700,
        "amount_received": 25700,
        "currency": "myr",
        "created": 1899500000,
        "metadata": {"platform": "tourdesk"},
        "last_payment_error": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class StripeGatewayTests(SimpleTestCase):
    def setUp(self) -> None:
        self.gateway = StripeGateway(api_key="sk_test_x", webhook_secret="whsec_x")

    @patch("apps.payments.gateway.stripe.PaymentIntent.retrieve")
    def test_retrieve_maps_intent(self, retrieve) -> None:
        retrieve.return_value = fake_intent()

        payment = self.gateway.retrieve_payment("pi_1")

        retrieve.assert_called_once_with("pi_1", api_key="sk_test_x")
        self.assertEqual(payment.amount, Decimal("257"))
        self.assertEqual(payment.currency, "MYR")
        self.assertEqual(payment.created, datetime.fromtimestamp(1899500000, tz=timezone.utc))
        self.assertTrue(payment.succeeded)
        self.assertEqual(payment.platform, "tourdesk")

    @patch("apps.payments.gateway.stripe.PaymentIntent.retrieve", side_effect=stripe.StripeError("No such intent"))
    def test_retrieve_errors_become_gateway_errors(self, retrieve) -> None:
        with self.assertRaises(PaymentGatewayError):
            self.gateway.retrieve_payment("pi_missing")

    @patch("apps.payments.gateway.stripe.PaymentIntent.list")
    def test_list_keeps_succeeded_only(self, list_intents) -> None:
        page = MagicMock()
        page.auto_paging_iter.return_value = iter(
            [fake_intent(), fake_intent(id="pi_2", status="canceled", amount_received=0)]
        )
        list_intents.return_value = page

        since = datetime(2030, 3, 9, tzinfo=timezone.utc)
        payments = self.gateway.list_succeeded_payments(since, 10)

        self.assertEqual([payment.id for payment in payments], ["pi_1"])
        self.assertEqual(list_intents.call_args.kwargs["created"], {"gte": int(since.timestamp())})

    @patch("apps.payments.gateway.stripe.Webhook.construct_event")
    def test_verify_webhook_returns_plain_dict(self, construct_event) -> None:
        body = json.dumps({"id": "evt_1", "type": "payment_intent.succeeded"}).encode()

        event = self.gateway.verify_webhook(body, "t=1,v1=abc")

        construct_event.assert_called_once_with(body, "t=1,v1=abc", "whsec_x")
        self.assertEqual(event, {"id": "evt_1", "type": "payment_intent.succeeded"})

    @patch("apps.payments.gateway.stripe.Webhook.construct_event", side_effect=ValueError("bad payload"))
    def test_verify_webhook_rejects_bad_payload(self, construct_event) -> None:
        with self.assertRaises(PaymentGatewayError):
            self.gateway.verify_webhook(b"{", "t=1,v1=abc")
