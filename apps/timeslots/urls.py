"""URL routing for slot endpoints."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import DaySlotsView, SlotAvailabilityView, SlotMaintenanceView, SlotSummaryView

urlpatterns = [
    path("maintenance/", SlotMaintenanceView.as_view(), name="slot-maintenance"),
    path("<str:package_type>/<int:package_id>/", DaySlotsView.as_view(), name="slot-day"),
    path(
        "<str:package_type>/<int:package_id>/availability/",
        SlotAvailabilityView.as_view(),
        name="slot-availability",
    ),
    path(
        "<str:package_type>/<int:package_id>/summary/",
        SlotSummaryView.as_view(),
        name="slot-summary",
    ),
]
