"""Celery tasks for payment reconciliation."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.db import InterfaceError, OperationalError  # type: ignore

from .models import PaymentEvent
from .reconciliation import reconcile_event

logger = logging.getLogger(__name__)

# Store errors worth another attempt: dropped connections, lock timeouts
TRANSIENT_ERRORS = (OperationalError, InterfaceError)


@shared_task(
    bind=True,
    name="payments.process_payment_event",
    max_retries=settings.RECONCILIATION_MAX_RETRIES,
)
def process_payment_event(self, event_id: str) -> dict:
    """
    Reconcile one recorded webhook event.

    Transient store errors are retried with exponential backoff (1s, 2s,
    4s). Any other error, or running out of retries, marks the event failed
    and re-raises; the payment then surfaces in the orphan scan.
    """
    event = PaymentEvent.objects.filter(event_id=event_id).first()
    if event is None:
        logger.error(f"Payment event {event_id} not found")
        return {"status": "missing"}
    if event.status == PaymentEvent.Status.PROCESSED:
        return {"status": "already_processed"}

    PaymentEvent.objects.filter(pk=event.pk).update(attempts=self.request.retries + 1)
    try:
        outcome = reconcile_event(event.event_type, event.payload)
    except TRANSIENT_ERRORS as exc:
        if self.request.retries >= self.max_retries:
            logger.error(f"Payment event {event_id} failed after {self.request.retries} retries: {exc}")
            event.mark_failed(f"transient_store_error: {exc}")
            raise
        countdown = 2 ** self.request.retries
        logger.warning(
            f"Transient error on payment event {event_id}, retry {self.request.retries + 1} "
            f"in {countdown}s: {exc}"
        )
        raise self.retry(exc=exc, countdown=countdown)
    except Exception as exc:
        logger.error(f"Payment event {event_id} ({event.event_type}) failed: {exc}", exc_info=True)
        event.mark_failed(str(exc))
        raise

    event.mark_processed(outcome.to_dict())
    logger.info(f"Payment event {event_id} processed: {outcome.action} {outcome.booking_ids}")
    return {"status": "processed", **outcome.to_dict()}
