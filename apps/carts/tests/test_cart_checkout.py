from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

from django.core import mail
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.bookings.services import CreateBookingCommand, create_booking_direct
from apps.carts.models import Cart, CartItem
from apps.carts.services import CartCheckoutError, ContactInfo, book_cart_items, cart_summary
from apps.catalog.tests.factories import IN_TWO_DAYS, TOMORROW, FrozenClockMixin, make_package
from apps.customers.models import Customer
from apps.timeslots.models import SlotEntry
from apps.timeslots.services import ADD, update_slot_booking
from shared.domain.errors import BookingRejected, RejectionReason

CONTACT = ContactInfo(name="Mia Tan", email="mia@example.com", phone="+60123456789")


class CartTestMixin(FrozenClockMixin):
    def setUp(self) -> None:
        super().setUp()
        self.package = make_package()
        self.customer = Customer.objects.create(email="mia@example.com", name="Mia Tan")
        self.cart = Cart.objects.create(customer=self.customer)

    def add_item(self, package=None, **overrides) -> CartItem:
        package = package or self.package
        values = {
            "cart": self.cart,
            "package": package,
            "package_type": package.package_type,
            "package_title": package.title,
            "date": IN_TWO_DAYS,
            "time": "08:00 AM",
            "adults": 2,
            "children": 0,
            "total_price": Decimal("200.00"),
        }
        values.update(overrides)
        return CartItem.objects.create(**values)

    def booked(self, package=None, date: str = IN_TWO_DAYS, time: str = "08:00 AM") -> int:
        package = package or self.package
        return SlotEntry.objects.get(slot__package=package, slot__date=date, time=time).booked_count


class CartCheckoutTests(CartTestMixin, TestCase):
    def test_valid_item_booked_and_vanished_package_skipped(self) -> None:
        gone = make_package(title="Sunset Cruise")
        self.add_item()
        self.add_item(package=gone)
        gone.delete()

        result = book_cart_items("mia@example.com", CONTACT, checkout_session_id="cs_123")

        self.assertTrue(result.success)
        self.assertEqual(len(result.booking_ids), 1)
        self.assertEqual(result.errors, [])
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("Sunset Cruise", result.warnings[0])
        self.assertIn("no longer available", result.warnings[0])

        booking = Booking.objects.get(pk=result.booking_ids[0])
        self.assertEqual(booking.source, Booking.Source.CART)
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.checkout_session_id, "cs_123")
        self.assertEqual(booking.amount, Decimal("200.00"))
        self.assertEqual(booking.bank_charge, Decimal("5.60"))
        self.assertEqual(self.booked(), 2)
        self.assertFalse(self.cart.items.exists())
        self.assertEqual(len(mail.outbox), 1)

    def test_malformed_item_date_is_skipped_not_fatal(self) -> None:
        self.add_item()
        self.add_item(date="2030-3-12", time="02:00 PM")

        result = book_cart_items("mia@example.com", CONTACT)

        self.assertTrue(result.success)
        self.assertEqual(len(result.booking_ids), 1)
        self.assertEqual(result.errors, [])
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("Invalid date '2030-3-12'", result.warnings[0])
        self.assertEqual(Booking.objects.get().date, IN_TWO_DAYS)
        self.assertEqual(self.booked(), 2)
        self.assertEqual(self.booked(time="02:00 PM"), 0)
        self.assertFalse(self.cart.items.exists())

    def test_nothing_bookable_rolls_everything_back(self) -> None:
        update_slot_booking("tour", self.package.pk, IN_TWO_DAYS, "08:00 AM", 9, ADD)
        self.add_item()
        self.add_item(date="2030-03-01")

        result = book_cart_items("mia@example.com", CONTACT)

        self.assertFalse(result.success)
        self.assertEqual(result.booking_ids, [])
        self.assertIn("No bookings could be created from cart items", result.errors)
        self.assertEqual(len(result.warnings), 2)
        self.assertIn("insufficient_capacity", result.warnings[0])
        self.assertIn("already passed", result.warnings[1])
        self.assertEqual(self.cart.items.count(), 2)
        self.assertFalse(Booking.objects.exists())
        self.assertEqual(self.booked(), 9)
        self.assertEqual(mail.outbox, [])

    def test_failed_item_leaves_no_partial_rows(self) -> None:
        self.add_item()
        self.add_item(date=TOMORROW)

        with patch(
            "apps.carts.services.update_slot_booking",
            side_effect=[BookingRejected(RejectionReason.INSUFFICIENT_CAPACITY), 2],
        ):
            result = book_cart_items("mia@example.com", CONTACT)

        self.assertTrue(result.success)
        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(Booking.objects.get().date, TOMORROW)
        self.assertEqual(len(result.warnings), 1)

    def test_store_error_is_reported_as_error(self) -> None:
        self.add_item()

        with patch("apps.carts.services.update_slot_booking", side_effect=DatabaseError("disk full")):
            result = book_cart_items("mia@example.com", CONTACT)

        self.assertFalse(result.success)
        self.assertEqual(len(result.errors), 2)
        self.assertIn("Failed to create booking", result.errors[0])
        self.assertEqual(self.cart.items.count(), 1)
        self.assertFalse(Booking.objects.exists())

    def test_existing_booking_for_same_departure_is_skipped(self) -> None:
        create_booking_direct(
            CreateBookingCommand(
                package_type="tour",
                package_id=self.package.pk,
                date=IN_TWO_DAYS,
                time="08:00 AM",
                adults=1,
                contact_email="mia@example.com",
            )
        )
        self.add_item(time="8:00 am")
        self.add_item(date=TOMORROW)

        result = book_cart_items("mia@example.com", CONTACT)

        self.assertTrue(result.success)
        self.assertEqual(len(result.booking_ids), 1)
        self.assertIn("already have a booking", result.warnings[0])

    def test_minimum_occupancy_is_enforced_per_item(self) -> None:
        strict = make_package(minimum_person=4)
        self.add_item(package=strict, adults=2)
        self.add_item()

        result = book_cart_items("mia@example.com", CONTACT)

        self.assertTrue(result.success)
        self.assertIn("minimum_occupancy_not_met", result.warnings[0])
        self.assertEqual(self.booked(package=strict), 0)

    def test_email_failure_is_only_a_warning(self) -> None:
        self.add_item()

        with patch("apps.carts.services.send_booking_confirmation_email", return_value=False):
            result = book_cart_items("mia@example.com", CONTACT)

        self.assertTrue(result.success)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("could not be sent", result.warnings[0])
        self.assertEqual(Booking.objects.count(), 1)

    def test_unknown_customer_or_empty_cart(self) -> None:
        with self.assertRaises(CartCheckoutError):
            book_cart_items("stranger@example.com", CONTACT)
        with self.assertRaises(CartCheckoutError):
            book_cart_items("mia@example.com", CONTACT)


class CartSummaryTests(CartTestMixin, TestCase):
    def test_expired_items_are_listed_but_not_charged(self) -> None:
        self.add_item(total_price=Decimal("100.00"))
        self.add_item(date="2030-03-01", total_price=Decimal("80.00"))
        self.add_item(date="2030-3-12", total_price=Decimal("50.00"))

        summary = cart_summary("mia@example.com")

        self.assertEqual(summary["valid_items"], 1)
        self.assertEqual(summary["expired_items"], 2)
        self.assertEqual(summary["total_amount"], "100.00")
        self.assertEqual(summary["bank_charge"], "2.80")
        self.assertEqual(summary["grand_total"], "102.80")
        self.assertEqual([item["is_expired"] for item in summary["items"]], [False, True, True])


class CartAPITests(CartTestMixin, APITestCase):
    def _body(self, email: str = "mia@example.com") -> dict:
        return {
            "email": email,
            "contact_info": {"name": "Mia Tan", "email": "mia@example.com", "phone": "+60123456789"},
        }

    def test_checkout_created(self) -> None:
        self.add_item()
        response = self.client.post(reverse("cart-checkout"), self._body(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(response.data["success"])
        self.assertEqual(len(response.data["booking_ids"]), 1)

    def test_checkout_with_nothing_bookable_is_400(self) -> None:
        self.add_item(date="2030-03-01")
        response = self.client.post(reverse("cart-checkout"), self._body(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data["success"])

    def test_unknown_customer_is_404(self) -> None:
        response = self.client.post(reverse("cart-checkout"), self._body("ghost@example.com"), format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn("Customer not found", response.data["errors"][0])

    def test_summary_endpoint(self) -> None:
        self.add_item()
        response = self.client.get(reverse("cart-summary"), {"email": "mia@example.com"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["valid_items"], 1)
