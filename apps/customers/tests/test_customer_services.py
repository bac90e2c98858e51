from __future__ import annotations

from django.test import TestCase

from apps.customers.models import Customer
from apps.customers.services import find_customer, find_or_create_customer
from shared.domain.errors import BookingRejected, RejectionReason


class CustomerServiceTests(TestCase):
    def test_email_is_normalized_and_reused(self) -> None:
        first = find_or_create_customer("  Ana@Example.COM ", name="Ana", phone="+60 12-345 6789")
        second = find_or_create_customer("ana@example.com", name="Someone else")

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(first.email, "ana@example.com")
        self.assertEqual(first.phone, "+60123456789")
        self.assertEqual(Customer.objects.get().name, "Ana")

    def test_find_customer_is_case_insensitive(self) -> None:
        find_or_create_customer("bo@example.com")
        self.assertIsNotNone(find_customer("BO@example.com"))
        self.assertIsNone(find_customer("nobody@example.com"))

    def test_blank_email_is_rejected(self) -> None:
        with self.assertRaises(BookingRejected) as ctx:
            find_or_create_customer("   ")
        self.assertEqual(ctx.exception.reason, RejectionReason.VALIDATION_ERROR)
