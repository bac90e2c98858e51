"""Booking ledger models."""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.db import models, transaction  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.catalog.models import Package, PackageType
from apps.customers.models import Customer


class BookingQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status__in=Booking.ACTIVE_STATUSES)

    def for_slot(self, package_id, date: str, time: str):
        return self.filter(package_id=package_id, date=date, time=time)


class Booking(models.Model):
    """One customer's reservation on a single departure."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PROCESSING = "processing", _("Processing")
        SUCCEEDED = "succeeded", _("Succeeded")
        FAILED = "failed", _("Failed")

    class Source(models.TextChoices):
        PUBLIC = "public", _("Public booking form")
        ADMIN = "admin", _("Administrator")
        CART = "cart", _("Cart checkout")
        RECONSTRUCTED = "reconstructed", _("Rebuilt from payment")

    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    package = models.ForeignKey(
        Package,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    package_type = models.CharField(max_length=16, choices=PackageType.choices)
    package_title = models.CharField(max_length=255, blank=True)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="bookings")
    date = models.CharField(max_length=10, help_text="Operator-local date, YYYY-MM-DD.")
    time = models.CharField(max_length=8)
    adults = models.PositiveSmallIntegerField(default=1)
    children = models.PositiveSmallIntegerField(default=0)
    occupancy = models.PositiveIntegerField(
        default=0,
        help_text=_("Capacity units this booking holds on its slot."),
    )
    occupancy_committed = models.BooleanField(
        default=False,
        help_text=_("Whether the occupancy was actually applied to the slot."),
    )

    contact_name = models.CharField(max_length=255, blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=32, blank=True)
    pickup_location = models.CharField(max_length=255, blank=True)
    special_requests = models.TextField(blank=True)

    payment_intent_id = models.CharField(max_length=255, null=True, blank=True, unique=True)
    checkout_session_id = models.CharField(max_length=255, blank=True, db_index=True)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    bank_charge = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="MYR")
    reconciled_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    source = models.CharField(max_length=20, choices=Source.choices, default=Source.PUBLIC)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["package", "date", "time"], name="booking_slot_idx"),
            models.Index(fields=["status", "date"], name="booking_status_date_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} for {self.package_type} {self.package_id}"

    def save(self, *args, **kwargs):  # type: ignore
        with transaction.atomic():
            if self._state.adding and not self.booking_code:
                self.booking_code = self.generate_booking_code()
            if not self.payment_intent_id:
                self.payment_intent_id = None
            super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def total_guests(self) -> int:
        return self.adults + self.children

    @property
    def total_amount(self) -> Decimal:
        return self.amount + self.bank_charge

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    def summary(self) -> dict:
        """Fields the confirmation email needs."""
        return {
            "booking_code": self.booking_code,
            "package_title": self.package_title,
            "date": self.date,
            "time": self.time,
            "adults": self.adults,
            "children": self.children,
            "pickup_location": self.pickup_location,
            "contact_name": self.contact_name,
            "contact_email": self.contact_email,
            "total": f"{self.total_amount:.2f} {self.currency}",
            "status": self.status,
        }
