"""Celery tasks for the slot store."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import run_horizon_maintenance

logger = logging.getLogger(__name__)


@shared_task(name="timeslots.maintain_slot_horizon")
def maintain_slot_horizon() -> dict:
    """
    Keep every active package bookable for the full rolling horizon.

    Runs daily through Celery Beat and can be triggered by an admin.

    Returns:
        dict: {"packages_processed", "days_generated", "errors"}
    """
    return run_horizon_maintenance()
