"""Clock and label helpers pinned to the operator's timezone.

Slot dates are plain ``YYYY-MM-DD`` strings and departure labels are
12-hour strings such as ``"08:00 AM"``. Both are only meaningful in the
operating timezone (``settings.BOOKING_TIMEZONE``), never the caller's.
"""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

LABEL_FORMAT = "%I:%M %p"
ACCEPTED_TIME_FORMATS = (LABEL_FORMAT, "%I:%M%p", "%H:%M")


def operating_tz() -> ZoneInfo:
    return ZoneInfo(settings.BOOKING_TIMEZONE)


def operating_now() -> datetime:
    return timezone.now().astimezone(operating_tz())


def operating_today() -> date:
    return operating_now().date()


def parse_time_label(label: str) -> time:
    """Parse ``"08:00 AM"`` or ``"14:30"`` into a :class:`time`."""

    cleaned = " ".join(str(label or "").split()).upper()
    for fmt in ACCEPTED_TIME_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised departure time {label!r}")


def canonical_label(label: str) -> str:
    """Render any accepted time string the way slot entries store it."""
    return parse_time_label(label).strftime(LABEL_FORMAT)


def normalize_date(value: str | date) -> str:
    if isinstance(value, datetime):
        value = value.astimezone(operating_tz()).date()
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(str(value).strip()).isoformat()


def departure_instant(day: str | date, label: str) -> datetime:
    """Absolute departure moment of a slot, in the operating timezone."""

    if isinstance(day, str):
        day = date.fromisoformat(day)
    return datetime.combine(day, parse_time_label(label), tzinfo=operating_tz())
