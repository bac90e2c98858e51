"""Admin registration for the slot store."""

from __future__ import annotations

from django.contrib import admin

from .models import SlotEntry, TimeSlot


class SlotEntryInline(admin.TabularInline):
    model = SlotEntry
    extra = 0
    fields = ("position", "time", "capacity", "booked_count", "minimum_person")
    readonly_fields = ("booked_count",)


@admin.register(TimeSlot)
class TimeSlotAdmin(admin.ModelAdmin):
    list_display = ("package", "date", "created_at")
    list_filter = ("package__package_type",)
    search_fields = ("package__title", "date")
    inlines = [SlotEntryInline]
