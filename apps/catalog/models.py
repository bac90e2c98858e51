"""Catalog models used by the booking engine."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PackageType(models.TextChoices):
    TOUR = "tour", _("Tour")
    TRANSFER = "transfer", _("Transfer")


class Package(models.Model):
    """A bookable tour or transfer product."""

    class Category(models.TextChoices):
        SHARED = "shared", _("Shared departure")
        PRIVATE = "private", _("Private / per vehicle")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        SOLD = "sold", _("Sold out")

    package_type = models.CharField(max_length=16, choices=PackageType.choices)
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    category = models.CharField(
        max_length=16,
        choices=Category.choices,
        default=Category.SHARED,
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    minimum_person = models.PositiveSmallIntegerField(default=1)
    maximum_person = models.PositiveSmallIntegerField(null=True, blank=True)
    slot_capacity = models.PositiveIntegerField(
        help_text=_("Capacity units per departure: seats, or vehicles for private packages."),
    )
    departure_times = models.JSONField(
        default=list,
        help_text=_('Departure labels, e.g. ["08:00 AM", "01:30 PM"].'),
    )
    adult_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    child_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    pickup_location = models.CharField(max_length=255, blank=True)
    booked_count = models.PositiveIntegerField(
        default=0,
        help_text=_("Aggregate guests booked across all departures."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(minimum_person__gte=1),
                name="package_minimum_person_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["package_type", "status"], name="catalog_pkg_type_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.get_package_type_display()}: {self.title}"

    @property
    def is_private(self) -> bool:
        return self.category == self.Category.PRIVATE

    def occupancy_for(self, adults: int, children: int) -> int:
        """Capacity units a booking consumes: one vehicle, or one seat per guest."""
        if self.is_private:
            return 1
        return adults + children


class BlackoutDate(models.Model):
    """A calendar date closed for every package of one type."""

    date = models.DateField()
    package_type = models.CharField(max_length=16, choices=PackageType.choices)
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(
                fields=["date", "package_type"],
                name="blackout_unique_date_type",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.date} ({self.package_type})"
