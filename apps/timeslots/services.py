"""Slot mutator and rolling-horizon slot generation."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import F, Sum, Value  # type: ignore
from django.db.models.functions import Greatest, Least  # type: ignore

from apps.catalog.models import Package
from apps.catalog.services import get_package, is_blackout_date
from shared.domain.errors import BookingRejected, RejectionReason
from shared.domain.value_objects import SlotKey

from . import timeutils
from .models import SlotEntry, TimeSlot

logger = logging.getLogger(__name__)

ADD = "add"
SUBTRACT = "subtract"


class SlotNotFound(BookingRejected):
    """No slot entry exists for the requested package, date and time."""

    def __init__(self, key: SlotKey):
        self.key = key
        super().__init__(RejectionReason.NO_SLOT, f"No departure slot {key}.")


# ============================================================================
# SLOT MUTATOR
# ============================================================================

def _slot_key(package_type: str, package_id, date, time) -> SlotKey:
    try:
        return SlotKey(
            package_type=package_type,
            package_id=int(package_id),
            date=timeutils.normalize_date(date),
            time=timeutils.canonical_label(time),
        )
    except (TypeError, ValueError) as exc:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, str(exc))


def update_slot_booking(
    package_type: str,
    package_id,
    date,
    time: str,
    occupancy: int,
    operation: str = ADD,
) -> int:
    """
    Apply an occupancy delta to exactly one departure entry.

    ``add`` is a single conditional UPDATE that only matches while the new
    count stays within capacity, so concurrent callers cannot both pass the
    check. A zero row count means the guard refused: nothing was written
    and ``insufficient_capacity`` is raised. ``subtract`` floors at zero.

    Returns the entry's booked count after the update.
    """
    key = _slot_key(package_type, package_id, date, time)
    if occupancy < 0:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, "Occupancy delta must not be negative.")
    if operation not in (ADD, SUBTRACT):
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, f"Unknown slot operation {operation!r}.")

    entry_id = (
        SlotEntry.objects.filter(
            slot__package_id=key.package_id,
            slot__package__package_type=key.package_type,
            slot__date=key.date,
            time=key.time,
        )
        .values_list("pk", flat=True)
        .first()
    )
    if entry_id is None:
        raise SlotNotFound(key)

    entries = SlotEntry.objects.filter(pk=entry_id)
    if operation == ADD:
        updated = entries.filter(booked_count__lte=F("capacity") - occupancy).update(
            booked_count=F("booked_count") + occupancy
        )
        if not updated:
            raise BookingRejected(
                RejectionReason.INSUFFICIENT_CAPACITY,
                f"Not enough capacity left on {key} for {occupancy}.",
            )
    else:
        entries.update(booked_count=Greatest(F("booked_count") - occupancy, Value(0)))

    booked = entries.values_list("booked_count", flat=True).first()
    logger.info(f"Slot {key}: {operation} {occupancy}, booked now {booked}")
    return booked


# ============================================================================
# GENERATION
# ============================================================================

def package_time_labels(package: Package) -> list[str]:
    """Canonical departure labels of a package, earliest first."""

    labels: dict[str, object] = {}
    for raw in package.departure_times or []:
        try:
            parsed = timeutils.parse_time_label(raw)
        except ValueError:
            logger.warning(f"Package {package.pk}: skipping invalid departure time {raw!r}")
            continue
        labels[parsed.strftime(timeutils.LABEL_FORMAT)] = parsed
    return sorted(labels, key=labels.__getitem__)


def _entry_rows(slot: TimeSlot, package: Package, labels: list[str]) -> list[SlotEntry]:
    return [
        SlotEntry(
            slot=slot,
            position=position,
            time=label,
            capacity=package.slot_capacity,
            minimum_person=package.minimum_person,
        )
        for position, label in enumerate(labels)
    ]


def generate_slots_for_package(
    package: Package,
    *,
    days: int | None = None,
    start: date | None = None,
) -> int:
    """
    Create missing day documents for the rolling horizon.

    Existing days are left untouched. Returns the number of days created.
    """
    days = settings.SLOT_HORIZON_DAYS if days is None else days
    start = start or timeutils.operating_today()
    labels = package_time_labels(package)
    if not labels:
        logger.warning(f"Package {package.pk} has no departure times; no slots generated")
        return 0

    created_days = 0
    with transaction.atomic():
        for offset in range(days):
            day = (start + timedelta(days=offset)).isoformat()
            slot, created = TimeSlot.objects.get_or_create(package=package, date=day)
            if not created:
                continue
            SlotEntry.objects.bulk_create(_entry_rows(slot, package, labels))
            created_days += 1

    if created_days:
        logger.info(f"Generated {created_days} slot days for package {package.pk}")
    return created_days


@transaction.atomic
def update_slots_for_package(package: Package) -> int:
    """
    Re-apply departure times, capacity and minimum to future days.

    Bookings are preserved: counts are clamped to the new capacity and a
    removed departure that still carries bookings is kept. Returns the
    number of future days touched, then tops the horizon up.
    """
    labels = package_time_labels(package)
    today = timeutils.operating_today().isoformat()
    touched = 0

    for slot in TimeSlot.objects.filter(package=package, date__gte=today).prefetch_related("entries"):
        existing = {entry.time: entry for entry in slot.entries.all()}
        for position, label in enumerate(labels):
            entry = existing.pop(label, None)
            if entry is None:
                SlotEntry.objects.create(
                    slot=slot,
                    position=position,
                    time=label,
                    capacity=package.slot_capacity,
                    minimum_person=package.minimum_person,
                )
                continue
            if entry.booked_count > package.slot_capacity:
                logger.warning(
                    f"Slot {slot} {label}: {entry.booked_count} booked exceeds new capacity "
                    f"{package.slot_capacity}, clamping"
                )
            SlotEntry.objects.filter(pk=entry.pk).update(
                position=position,
                capacity=package.slot_capacity,
                minimum_person=package.minimum_person,
                booked_count=Least(F("booked_count"), Value(package.slot_capacity)),
            )

        for leftover in existing.values():
            if leftover.booked_count:
                logger.warning(f"Slot {slot} {leftover.time} removed from package but has bookings; kept")
                continue
            leftover.delete()
        touched += 1

    generate_slots_for_package(package)
    return touched


def run_horizon_maintenance() -> dict:
    """Top up the slot horizon of every active package."""

    results: dict = {"packages_processed": 0, "days_generated": 0, "errors": []}
    for package in Package.objects.filter(status=Package.Status.ACTIVE):
        try:
            results["days_generated"] += generate_slots_for_package(package)
            results["packages_processed"] += 1
        except Exception as e:
            logger.error(f"Slot maintenance failed for package {package.pk}: {e}", exc_info=True)
            results["errors"].append({"package_id": package.pk, "error": str(e)})

    logger.info(
        f"Slot maintenance: {results['packages_processed']} packages, "
        f"{results['days_generated']} days generated, {len(results['errors'])} errors"
    )
    return results


# ============================================================================
# READ MODELS
# ============================================================================

def list_day_slots(package_type: str, package_id, date) -> list[dict]:
    """Departures of one day with live availability flags."""

    package = get_package(package_type, package_id)
    try:
        day = timeutils.normalize_date(date)
    except ValueError as exc:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, str(exc))

    blackout = is_blackout_date(day, package_type)
    now = timeutils.operating_now()
    entries = SlotEntry.objects.filter(slot__package=package, slot__date=day).order_by("position")

    return [
        {
            "time": entry.time,
            "capacity": entry.capacity,
            "booked_count": entry.booked_count,
            "available_capacity": entry.available_capacity,
            "current_minimum": entry.current_minimum(package.is_private),
            "is_available": (
                not blackout
                and entry.available_capacity > 0
                and timeutils.departure_instant(day, entry.time) > now
            ),
        }
        for entry in entries
    ]


def slots_summary(package_type: str, package_id, start, end) -> list[dict]:
    """Per-day capacity totals for a date range (inclusive)."""

    package = get_package(package_type, package_id)
    rows = (
        TimeSlot.objects.filter(
            package=package,
            date__gte=timeutils.normalize_date(start),
            date__lte=timeutils.normalize_date(end),
        )
        .annotate(
            total_capacity=Sum("entries__capacity"),
            total_booked=Sum("entries__booked_count"),
        )
        .order_by("date")
    )
    return [
        {
            "date": row.date,
            "total_capacity": row.total_capacity or 0,
            "total_booked": row.total_booked or 0,
            "available": (row.total_capacity or 0) - (row.total_booked or 0),
        }
        for row in rows
    ]
