"""Admin registrations for the catalog."""

from __future__ import annotations

from django.contrib import admin, messages

from .models import BlackoutDate, Package


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "package_type",
        "category",
        "status",
        "minimum_person",
        "slot_capacity",
        "booked_count",
    )
    list_filter = ("package_type", "category", "status")
    search_fields = ("title", "slug")
    readonly_fields = ("booked_count", "created_at", "updated_at")
    prepopulated_fields = {"slug": ("title",)}
    actions = ["regenerate_future_slots"]

    @admin.action(description="Re-apply departures and capacity to future slots")
    def regenerate_future_slots(self, request, queryset):
        from apps.timeslots.services import update_slots_for_package

        days = sum(update_slots_for_package(package) for package in queryset)
        self.message_user(request, f"Updated {days} slot days.", messages.SUCCESS)


@admin.register(BlackoutDate)
class BlackoutDateAdmin(admin.ModelAdmin):
    list_display = ("date", "package_type", "description")
    list_filter = ("package_type",)
    date_hierarchy = "date"
