"""Read-only catalog lookups for the booking engine."""

from __future__ import annotations

from datetime import date as date_cls

from shared.domain.errors import BookingRejected, RejectionReason

from .models import BlackoutDate, Package, PackageType


def get_package(package_type: str, package_id) -> Package:
    """Return the package or raise ``package_not_found``."""

    if package_type not in PackageType.values:
        raise BookingRejected(RejectionReason.VALIDATION_ERROR, f"Unknown package type {package_type!r}.")
    try:
        return Package.objects.get(pk=package_id, package_type=package_type)
    except (Package.DoesNotExist, ValueError, TypeError):
        raise BookingRejected(
            RejectionReason.PACKAGE_NOT_FOUND,
            f"{package_type} {package_id} does not exist.",
        )


def is_blackout_date(day: str | date_cls, package_type: str) -> bool:
    """True when ``day`` is closed for every package of ``package_type``."""

    if isinstance(day, str):
        day = date_cls.fromisoformat(day)
    return BlackoutDate.objects.filter(date=day, package_type=package_type).exists()
