"""Generate the slot horizon as soon as a package is created."""

from __future__ import annotations

import logging

from django.db.models.signals import post_save  # type: ignore
from django.dispatch import receiver  # type: ignore

from apps.catalog.models import Package

from .services import generate_slots_for_package

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Package, dispatch_uid="timeslots_generate_for_new_package")
def generate_slots_on_package_created(sender, instance: Package, created: bool, raw: bool = False, **kwargs):
    if not created or raw:
        return
    try:
        generate_slots_for_package(instance)
    except Exception as e:
        # The nightly horizon job backfills anything missed here
        logger.error(f"Initial slot generation failed for package {instance.pk}: {e}", exc_info=True)
