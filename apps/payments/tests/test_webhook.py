from __future__ import annotations

import json
from unittest.mock import patch

import stripe
from django.db import OperationalError
from django.test import Client, TestCase
from django.urls import reverse

from apps.bookings.models import Booking
from apps.bookings.services import CreateBookingCommand, create_booking_direct
from apps.catalog.tests.factories import IN_TWO_DAYS, FrozenClockMixin, make_package
from apps.payments.models import PaymentEvent
from apps.payments.tasks import process_payment_event

CONSTRUCT_EVENT = "apps.payments.gateway.stripe.Webhook.construct_event"


def intent_event(event_id: str, payment_id: str, event_type: str = "payment_intent.succeeded") -> dict:
    return {
        "id": event_id,
        "type": event_type,
        "data": {
            "object": {
                "id": payment_id,
                "object": "payment_intent",
                "amount": 25700,
                "amount_received": 25700,
                "currency": "myr",
                "metadata": {"platform": "tourdesk"},
            }
        },
    }


class WebhookTestMixin(FrozenClockMixin):
    def setUp(self) -> None:
        super().setUp()
        self.package = make_package()
        self.booking = create_booking_direct(
            CreateBookingCommand(
                package_type="tour",
                package_id=self.package.pk,
                date=IN_TWO_DAYS,
                time="08:00 AM",
                adults=2,
                contact_email="guest@example.com",
                payment_intent_id="pi_hook",
            )
        )


class StripeWebhookTests(WebhookTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = Client()
        self.url = reverse("payments-webhook")

    def _post(self, event: dict, signature: str = "t=1,v1=abc"):
        return self.client.post(
            self.url,
            data=json.dumps(event),
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=signature,
        )

    @patch(CONSTRUCT_EVENT)
    def test_success_event_confirms_booking(self, construct_event) -> None:
        response = self._post(intent_event("evt_1", "pi_hook"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "received"})
        construct_event.assert_called_once()
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)
        event = PaymentEvent.objects.get(event_id="evt_1")
        self.assertEqual(event.status, PaymentEvent.Status.PROCESSED)
        self.assertEqual(event.outcome["action"], "confirmed")

    @patch(CONSTRUCT_EVENT)
    def test_duplicate_delivery_is_acknowledged_once(self, construct_event) -> None:
        self._post(intent_event("evt_dup", "pi_hook"))

        with patch("apps.payments.views.process_payment_event") as task:
            response = self._post(intent_event("evt_dup", "pi_hook"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "duplicate"})
        task.delay.assert_not_called()
        self.assertEqual(PaymentEvent.objects.count(), 1)

    @patch(CONSTRUCT_EVENT)
    def test_failed_event_is_retried_on_redelivery(self, construct_event) -> None:
        PaymentEvent.objects.create(
            event_id="evt_again",
            event_type="payment_intent.succeeded",
            payload=intent_event("evt_again", "pi_hook"),
            status=PaymentEvent.Status.FAILED,
        )

        response = self._post(intent_event("evt_again", "pi_hook"))

        self.assertEqual(response.json(), {"status": "received"})
        self.assertEqual(PaymentEvent.objects.get().status, PaymentEvent.Status.PROCESSED)

    @patch(CONSTRUCT_EVENT)
    def test_unhandled_type_is_stored_and_ignored(self, construct_event) -> None:
        response = self._post(intent_event("evt_refund", "pi_hook", "charge.refunded"))

        self.assertEqual(response.json(), {"status": "ignored"})
        self.assertEqual(PaymentEvent.objects.get().status, PaymentEvent.Status.IGNORED)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)

    @patch(CONSTRUCT_EVENT, side_effect=stripe.SignatureVerificationError("bad signature", "t=1,v1=abc"))
    def test_bad_signature_is_rejected(self, construct_event) -> None:
        response = self._post(intent_event("evt_forged", "pi_hook"))

        self.assertEqual(response.status_code, 400)
        self.assertFalse(PaymentEvent.objects.exists())

    @patch(CONSTRUCT_EVENT)
    def test_broker_outage_still_acknowledges(self, construct_event) -> None:
        with patch("apps.payments.views.process_payment_event") as task:
            task.delay.side_effect = ConnectionError("broker down")
            response = self._post(intent_event("evt_queued", "pi_hook"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(PaymentEvent.objects.get().status, PaymentEvent.Status.RECEIVED)

    def test_only_post_is_allowed(self) -> None:
        self.assertEqual(self.client.get(self.url).status_code, 405)


class ProcessPaymentEventTests(WebhookTestMixin, TestCase):
    def _record(self, event_id: str = "evt_task") -> PaymentEvent:
        return PaymentEvent.objects.create(
            event_id=event_id,
            event_type="payment_intent.succeeded",
            payload=intent_event(event_id, "pi_hook"),
        )

    def test_processes_and_records_outcome(self) -> None:
        self._record()

        result = process_payment_event.apply(args=["evt_task"])

        self.assertEqual(result.get()["action"], "confirmed")
        event = PaymentEvent.objects.get()
        self.assertEqual(event.status, PaymentEvent.Status.PROCESSED)
        self.assertEqual(event.attempts, 1)
        self.assertIsNotNone(event.processed_at)

    def test_processed_event_is_not_run_again(self) -> None:
        self._record()
        process_payment_event.apply(args=["evt_task"])

        with patch("apps.payments.tasks.reconcile_event") as reconcile:
            result = process_payment_event.apply(args=["evt_task"])

        reconcile.assert_not_called()
        self.assertEqual(result.get(), {"status": "already_processed"})

    def test_transient_errors_retry_three_times_then_fail(self) -> None:
        self._record()

        with patch(
            "apps.payments.tasks.reconcile_event",
            side_effect=OperationalError("database is locked"),
        ) as reconcile:
            result = process_payment_event.apply(args=["evt_task"])

        self.assertEqual(reconcile.call_count, 4)
        self.assertTrue(result.failed())
        event = PaymentEvent.objects.get()
        self.assertEqual(event.status, PaymentEvent.Status.FAILED)
        self.assertEqual(event.attempts, 4)
        self.assertTrue(event.last_error.startswith("transient_store_error"))
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)

    def test_permanent_errors_fail_without_retry(self) -> None:
        self._record()

        with patch("apps.payments.tasks.reconcile_event", side_effect=ValueError("bad payload")) as reconcile:
            result = process_payment_event.apply(args=["evt_task"])

        self.assertEqual(reconcile.call_count, 1)
        self.assertTrue(result.failed())
        self.assertEqual(PaymentEvent.objects.get().last_error, "bad payload")

    def test_missing_event(self) -> None:
        self.assertEqual(process_payment_event.apply(args=["evt_nope"]).get(), {"status": "missing"})
