import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("tourdesk")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Keep the rolling 90-day slot window topped up - daily at 02:00
    "maintain-slot-horizon": {
        "task": "timeslots.maintain_slot_horizon",
        "schedule": crontab(minute=0, hour=2),
    },
    # Confirmed bookings whose day has passed become completed - daily
    "complete-past-bookings": {
        "task": "bookings.complete_past_bookings",
        "schedule": crontab(minute=15, hour=0),
    },
}

app.conf.timezone = "Asia/Kuala_Lumpur"
