"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking
from .services import delete_booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "package_title",
        "date",
        "time",
        "status",
        "payment_status",
        "total_guests",
        "occupancy_committed",
        "source",
        "created_at",
    )
    list_filter = ("status", "payment_status", "source", "package_type")
    search_fields = ("booking_code", "contact_email", "payment_intent_id", "checkout_session_id")
    readonly_fields = (
        "booking_code",
        "occupancy",
        "occupancy_committed",
        "reconciled_at",
        "created_at",
        "updated_at",
    )

    def delete_model(self, request, obj):
        delete_booking(obj.pk)

    def delete_queryset(self, request, queryset):
        for booking_id in queryset.values_list("pk", flat=True):
            delete_booking(booking_id)
