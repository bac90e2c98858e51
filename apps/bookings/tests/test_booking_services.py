from __future__ import annotations

from decimal import Decimal

from django.core import mail
from django.test import TestCase

from apps.bookings.models import Booking
from apps.bookings.services import (
    CreateBookingCommand,
    complete_elapsed_bookings,
    confirm_payment,
    create_booking_direct,
    create_public_booking,
    delete_booking,
    update_booking_guests,
)
from apps.catalog.tests.factories import IN_TWO_DAYS, TODAY, FrozenClockMixin, make_package
from apps.timeslots.models import SlotEntry, TimeSlot
from apps.timeslots.services import ADD, SUBTRACT, update_slot_booking
from shared.domain.errors import BookingRejected, RejectionReason


class BookingTestMixin(FrozenClockMixin):
    def setUp(self) -> None:
        super().setUp()
        self.package = make_package()

    def command(self, **overrides) -> CreateBookingCommand:
        values = {
            "package_type": "tour",
            "package_id": self.package.pk,
            "date": IN_TWO_DAYS,
            "time": "08:00 AM",
            "adults": 2,
            "children": 1,
            "contact_email": "Guest@Example.com",
            "contact_name": "Guest",
        }
        values.update(overrides)
        return CreateBookingCommand(**values)

    def booked(self, date: str = IN_TWO_DAYS, time: str = "08:00 AM") -> int:
        return SlotEntry.objects.get(slot__package=self.package, slot__date=date, time=time).booked_count

    def package_counter(self) -> int:
        self.package.refresh_from_db()
        return self.package.booked_count


class CreateBookingTests(BookingTestMixin, TestCase):
    def test_creates_pending_booking_and_claims_occupancy(self) -> None:
        booking = create_booking_direct(self.command())

        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.PENDING)
        self.assertEqual(booking.occupancy, 3)
        self.assertTrue(booking.occupancy_committed)
        self.assertEqual(booking.customer.email, "guest@example.com")
        self.assertEqual(booking.amount, Decimal("250.00"))
        self.assertEqual(booking.bank_charge, Decimal("7.00"))
        self.assertEqual(booking.pickup_location, "Hotel lobby")
        self.assertEqual(len(booking.booking_code), 8)
        self.assertEqual(self.booked(), 3)
        self.assertEqual(self.package_counter(), 3)

    def test_time_is_stored_in_canonical_form(self) -> None:
        booking = create_booking_direct(self.command(time="14:00"))
        self.assertEqual(booking.time, "02:00 PM")
        self.assertEqual(self.booked(time="02:00 PM"), 3)

    def test_capacity_refusal_keeps_nothing(self) -> None:
        create_booking_direct(self.command(adults=8, children=0))

        with self.assertRaises(BookingRejected) as ctx:
            create_booking_direct(self.command(adults=3, children=0))

        self.assertEqual(ctx.exception.reason, RejectionReason.INSUFFICIENT_CAPACITY)
        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(self.booked(), 8)
        self.assertEqual(self.package_counter(), 8)

    def test_first_booking_must_reach_minimum(self) -> None:
        self.package = make_package(minimum_person=2, slot_capacity=2)

        with self.assertRaises(BookingRejected) as ctx:
            create_booking_direct(self.command(adults=1, children=0))
        self.assertEqual(ctx.exception.reason, RejectionReason.MINIMUM_OCCUPANCY_NOT_MET)
        self.assertEqual(self.booked(), 0)

        # Once someone else holds the first seat a single guest may join
        update_slot_booking("tour", self.package.pk, IN_TWO_DAYS, "08:00 AM", 1, ADD)
        late_joiner = create_booking_direct(self.command(adults=1, children=0, contact_email="solo@example.com"))
        self.assertEqual(late_joiner.occupancy, 1)
        self.assertEqual(self.booked(), 2)

    def test_last_unit_goes_to_exactly_one_booking(self) -> None:
        self.package = make_package(slot_capacity=1)

        create_booking_direct(self.command(adults=1, children=0))
        with self.assertRaises(BookingRejected) as ctx:
            create_booking_direct(self.command(adults=1, children=0, contact_email="second@example.com"))

        self.assertEqual(ctx.exception.reason, RejectionReason.INSUFFICIENT_CAPACITY)
        self.assertEqual(self.booked(), 1)

    def test_private_package_books_one_vehicle_at_vehicle_price(self) -> None:
        self.package = make_package(category="private", slot_capacity=2, adult_price=Decimal("400.00"))

        booking = create_booking_direct(self.command(adults=5, children=2))

        self.assertEqual(booking.occupancy, 1)
        self.assertEqual(booking.amount, Decimal("400.00"))
        self.assertEqual(self.booked(), 1)
        self.assertEqual(self.package_counter(), 7)

    def test_unknown_package(self) -> None:
        with self.assertRaises(BookingRejected) as ctx:
            create_booking_direct(self.command(package_id=999999))
        self.assertEqual(ctx.exception.reason, RejectionReason.PACKAGE_NOT_FOUND)

    def test_paid_booking_is_confirmed_and_emailed_after_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            booking = create_booking_direct(
                self.command(payment_intent_id="pi_paid", payment_status=Booking.PaymentStatus.SUCCEEDED)
            )

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
        self.assertIsNotNone(booking.reconciled_at)
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(booking.booking_code, mail.outbox[0].subject)
        self.assertEqual(mail.outbox[0].to, ["guest@example.com"])

    def test_duplicate_payment_id_is_refused(self) -> None:
        create_booking_direct(self.command(payment_intent_id="pi_dup"))

        with self.assertRaises(BookingRejected) as ctx:
            create_booking_direct(self.command(payment_intent_id="pi_dup", contact_email="other@example.com"))

        self.assertEqual(ctx.exception.reason, RejectionReason.DUPLICATE_PAYMENT)
        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(self.booked(), 3)

    def test_public_bookings_need_lead_time(self) -> None:
        # 02:00 PM today is five hours away
        with self.assertRaises(BookingRejected) as ctx:
            create_public_booking(self.command(date=TODAY, time="02:00 PM"))
        self.assertEqual(ctx.exception.reason, RejectionReason.CUTOFF)

        booking = create_booking_direct(self.command(date=TODAY, time="02:00 PM", source=Booking.Source.ADMIN))
        self.assertEqual(booking.source, Booking.Source.ADMIN)


class BookingLifecycleTests(BookingTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.booking = create_booking_direct(self.command())

    def test_guest_change_moves_occupancy_by_delta(self) -> None:
        update_booking_guests(self.booking.pk, adults=4, children=1)
        self.assertEqual(self.booked(), 5)
        self.assertEqual(self.package_counter(), 5)

        booking = update_booking_guests(self.booking.pk, adults=1, children=0)
        self.assertEqual(booking.occupancy, 1)
        self.assertEqual(self.booked(), 1)
        self.assertEqual(self.package_counter(), 1)

    def test_guest_change_over_capacity_changes_nothing(self) -> None:
        with self.assertRaises(BookingRejected) as ctx:
            update_booking_guests(self.booking.pk, adults=11, children=0)

        self.assertEqual(ctx.exception.reason, RejectionReason.INSUFFICIENT_CAPACITY)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.total_guests, 3)
        self.assertEqual(self.booked(), 3)

    def test_unclaimed_booking_can_shrink_on_a_full_slot(self) -> None:
        # Paid booking whose seats never reached the slot, on a departure now full
        update_slot_booking("tour", self.package.pk, IN_TWO_DAYS, "08:00 AM", 3, SUBTRACT)
        Booking.objects.filter(pk=self.booking.pk).update(occupancy_committed=False)
        update_slot_booking("tour", self.package.pk, IN_TWO_DAYS, "08:00 AM", 10, ADD)

        booking = update_booking_guests(self.booking.pk, adults=1, children=0)

        self.assertEqual(booking.occupancy, 1)
        self.assertFalse(booking.occupancy_committed)
        self.assertEqual(self.booked(), 10)
        self.assertEqual(self.package_counter(), 1)

        with self.assertRaises(BookingRejected) as ctx:
            update_booking_guests(self.booking.pk, adults=2, children=0)
        self.assertEqual(ctx.exception.reason, RejectionReason.INSUFFICIENT_CAPACITY)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.total_guests, 1)

    def test_confirm_payment_is_idempotent(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            confirmed = confirm_payment(self.booking.pk, "pi_manual")
        with self.captureOnCommitCallbacks(execute=True) as second:
            again = confirm_payment(self.booking.pk, "pi_other")

        self.assertEqual(confirmed.status, Booking.Status.CONFIRMED)
        self.assertEqual(confirmed.payment_status, Booking.PaymentStatus.SUCCEEDED)
        self.assertEqual(again.payment_intent_id, "pi_manual")
        self.assertEqual(second, [])
        self.assertEqual(len(mail.outbox), 1)

    def test_cancelled_booking_cannot_be_confirmed(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(status=Booking.Status.CANCELLED)
        with self.assertRaises(BookingRejected) as ctx:
            confirm_payment(self.booking.pk)
        self.assertEqual(ctx.exception.reason, RejectionReason.VALIDATION_ERROR)

    def test_delete_releases_slot_and_counter(self) -> None:
        delete_booking(self.booking.pk)

        self.assertFalse(Booking.objects.exists())
        self.assertEqual(self.booked(), 0)
        self.assertEqual(self.package_counter(), 0)

    def test_delete_survives_missing_slot(self) -> None:
        TimeSlot.objects.filter(package=self.package, date=IN_TWO_DAYS).delete()

        delete_booking(self.booking.pk)

        self.assertFalse(Booking.objects.exists())
        self.assertEqual(self.package_counter(), 0)

    def test_elapsed_confirmed_bookings_are_completed(self) -> None:
        confirm_payment(self.booking.pk)
        pending = create_booking_direct(self.command(contact_email="later@example.com"))

        self.assertEqual(complete_elapsed_bookings(today=IN_TWO_DAYS), 0)
        self.assertEqual(complete_elapsed_bookings(today="2030-03-13"), 1)

        self.booking.refresh_from_db()
        pending.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.COMPLETED)
        self.assertEqual(pending.status, Booking.Status.PENDING)
