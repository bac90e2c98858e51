"""Admin registration for the webhook ledger."""

from __future__ import annotations

from django.contrib import admin, messages

from .models import PaymentEvent
from .tasks import process_payment_event


@admin.register(PaymentEvent)
class PaymentEventAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "status", "attempts", "received_at", "processed_at")
    list_filter = ("status", "event_type")
    search_fields = ("event_id",)
    readonly_fields = ("event_id", "event_type", "payload", "outcome", "received_at", "processed_at")
    actions = ["reprocess_events"]

    @admin.action(description="Re-run reconciliation for failed events")
    def reprocess_events(self, request, queryset):
        failed = queryset.filter(status=PaymentEvent.Status.FAILED)
        for event_id in failed.values_list("event_id", flat=True):
            process_payment_event.delay(event_id)
        self.message_user(request, f"Queued {failed.count()} events.", messages.INFO)
