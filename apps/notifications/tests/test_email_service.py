from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

from django.core import mail
from django.test import SimpleTestCase

from apps.bookings.models import Booking
from apps.notifications.services import send_booking_confirmation_email, send_email_notification


class EmailNotificationTests(SimpleTestCase):
    def test_sends_plain_text_mail(self) -> None:
        self.assertTrue(send_email_notification("guest@example.com", "Hello", "Body"))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["guest@example.com"])

    def test_missing_recipient_is_skipped(self) -> None:
        self.assertFalse(send_email_notification("", "Hello", "Body"))
        self.assertEqual(mail.outbox, [])

    @patch("apps.notifications.services.send_mail", side_effect=OSError("smtp down"))
    def test_backend_failure_returns_false(self, send_mail) -> None:
        self.assertFalse(send_email_notification("guest@example.com", "Hello", "Body"))

    def test_booking_confirmation_body(self) -> None:
        booking = Booking(
            booking_code="AB12CD34",
            package_title="Island Hopping",
            date="2030-03-12",
            time="08:00 AM",
            adults=2,
            children=1,
            pickup_location="Hotel lobby",
            contact_name="Mia",
            contact_email="mia@example.com",
            amount=Decimal("250.00"),
            bank_charge=Decimal("7.00"),
            currency="MYR",
            status=Booking.Status.CONFIRMED,
        )

        self.assertTrue(send_booking_confirmation_email(booking))

        message = mail.outbox[0]
        self.assertEqual(message.subject, "Booking #AB12CD34 received")
        self.assertIn("Departure: 2030-03-12 at 08:00 AM", message.body)
        self.assertIn("Guests: 2 adult(s), 1 child(ren)", message.body)
        self.assertIn("Total: 257.00 MYR", message.body)
