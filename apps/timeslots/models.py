"""Slot store models.

One ``TimeSlot`` row per (package, calendar date) holds the ordered
departure ``SlotEntry`` rows for that day. ``booked_count`` on an entry is
only ever changed through ``apps.timeslots.services.update_slot_booking``.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.db.models import F, Q  # type: ignore

from apps.catalog.models import Package


class TimeSlot(models.Model):
    package = models.ForeignKey(Package, on_delete=models.CASCADE, related_name="time_slots")
    date = models.CharField(max_length=10, help_text="Operator-local date, YYYY-MM-DD.")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=["package", "date"], name="timeslot_unique_package_date"),
        ]

    def __str__(self) -> str:
        return f"{self.package_id}@{self.date}"

    @property
    def package_type(self) -> str:
        return self.package.package_type


class SlotEntry(models.Model):
    slot = models.ForeignKey(TimeSlot, on_delete=models.CASCADE, related_name="entries")
    position = models.PositiveSmallIntegerField(default=0)
    time = models.CharField(max_length=8, help_text='Departure label, e.g. "08:00 AM".')
    capacity = models.PositiveIntegerField()
    booked_count = models.PositiveIntegerField(default=0)
    minimum_person = models.PositiveSmallIntegerField(default=1)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["slot", "time"], name="slotentry_unique_slot_time"),
            models.CheckConstraint(
                condition=Q(booked_count__gte=0),
                name="slotentry_booked_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(booked_count__lte=F("capacity")),
                name="slotentry_booked_within_capacity",
            ),
            models.CheckConstraint(
                condition=Q(minimum_person__gte=1),
                name="slotentry_minimum_person_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.slot} {self.time} ({self.booked_count}/{self.capacity})"

    @property
    def available_capacity(self) -> int:
        return max(self.capacity - self.booked_count, 0)

    def current_minimum(self, is_private: bool) -> int:
        """Smallest occupancy a new booking on this departure must bring.

        The first booking of a shared departure has to reach the package
        minimum; once anyone is booked, later guests may join singly.
        Private departures always require the full minimum.
        """
        if is_private or self.booked_count == 0:
            return self.minimum_person
        return 1
