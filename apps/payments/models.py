"""Webhook event ledger."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PaymentEvent(models.Model):
    """One processor webhook delivery, keyed by the processor's event id."""

    class Status(models.TextChoices):
        RECEIVED = "received", _("Received")
        PROCESSED = "processed", _("Processed")
        FAILED = "failed", _("Failed")
        IGNORED = "ignored", _("Ignored")

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    payload = models.JSONField(default=dict)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.RECEIVED)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True)
    outcome = models.JSONField(default=dict, blank=True)
    received_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-received_at"]
        indexes = [
            models.Index(fields=["status", "received_at"], name="payment_event_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} {self.event_id} ({self.status})"

    @property
    def payment_object(self) -> dict:
        return (self.payload.get("data") or {}).get("object") or {}

    def mark_processed(self, outcome: dict) -> None:
        self.status = self.Status.PROCESSED
        self.outcome = outcome
        self.last_error = ""
        self.processed_at = timezone.now()
        self.save(update_fields=["status", "outcome", "last_error", "processed_at"])

    def mark_failed(self, error: str) -> None:
        self.status = self.Status.FAILED
        self.last_error = error
        self.save(update_fields=["status", "last_error"])
