"""Availability engine.

Answers whether a (package, date, departure, occupancy) request may go
ahead. Checks run in a fixed order and stop at the first failure:
blackout, cutoff, slot existence, capacity. Nothing here writes.

The minimum-occupancy rule is not a rejection reason of this engine:
callers compare the requested occupancy with ``current_minimum`` and
refuse with ``minimum_occupancy_not_met`` themselves, so that the payment
reconstruction path can skip it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from apps.catalog.services import is_blackout_date
from shared.domain.errors import RejectionReason

from . import timeutils
from .models import SlotEntry


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    available_capacity: int = 0
    reason: RejectionReason | None = None
    current_minimum: int = 1

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "available_capacity": self.available_capacity,
            "reason": self.reason.value if self.reason else None,
            "current_minimum": self.current_minimum,
        }


def find_slot_entry(package_type: str, package_id, date: str, time: str) -> SlotEntry | None:
    """Locate one departure entry, matching the label in canonical form."""

    try:
        label = timeutils.canonical_label(time)
        day = timeutils.normalize_date(date)
    except ValueError:
        return None
    return (
        SlotEntry.objects.select_related("slot__package")
        .filter(
            slot__package_id=package_id,
            slot__package__package_type=package_type,
            slot__date=day,
            time=label,
        )
        .first()
    )


def check_availability(
    package_type: str,
    package_id,
    date: str,
    time: str,
    requested_occupancy: int,
    *,
    now: datetime | None = None,
) -> AvailabilityResult:
    try:
        day = timeutils.normalize_date(date)
        departure = timeutils.departure_instant(day, time)
    except ValueError:
        return AvailabilityResult(False, reason=RejectionReason.VALIDATION_ERROR)

    if is_blackout_date(day, package_type):
        return AvailabilityResult(False, reason=RejectionReason.BLACKOUT)

    now = now or timeutils.operating_now()
    if departure <= now:
        return AvailabilityResult(False, reason=RejectionReason.CUTOFF)

    entry = find_slot_entry(package_type, package_id, day, time)
    if entry is None:
        return AvailabilityResult(False, reason=RejectionReason.NO_SLOT)

    remaining = entry.available_capacity
    minimum = entry.current_minimum(entry.slot.package.is_private)
    if remaining < requested_occupancy:
        return AvailabilityResult(
            False,
            available_capacity=remaining,
            reason=RejectionReason.INSUFFICIENT_CAPACITY,
            current_minimum=minimum,
        )
    return AvailabilityResult(True, available_capacity=remaining, current_minimum=minimum)
