"""Slot listing, availability lookup and maintenance endpoints."""

from __future__ import annotations

from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.catalog.models import Package
from shared.domain.errors import BookingRejected
from shared.infrastructure.api import rejection_response

from .availability import check_availability
from .serializers import (
    AvailabilityQuerySerializer,
    DayQuerySerializer,
    MaintenanceRequestSerializer,
    SummaryQuerySerializer,
)
from .services import list_day_slots, run_horizon_maintenance, slots_summary, update_slots_for_package


class DaySlotsView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, package_type: str, package_id: int):  # type: ignore
        query = DayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            slots = list_day_slots(package_type, package_id, query.validated_data["date"])
        except BookingRejected as exc:
            return rejection_response(exc)
        return Response({"date": str(query.validated_data["date"]), "slots": slots})


class SlotAvailabilityView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, package_type: str, package_id: int):  # type: ignore
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        result = check_availability(
            package_type,
            package_id,
            data["date"],
            data["time"],
            data["persons"],
        )
        payload = result.to_dict()
        payload["meets_minimum"] = data["persons"] >= result.current_minimum
        return Response(payload)


class SlotSummaryView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request, package_type: str, package_id: int):  # type: ignore
        query = SummaryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            days = slots_summary(
                package_type,
                package_id,
                query.validated_data["start"],
                query.validated_data["end"],
            )
        except BookingRejected as exc:
            return rejection_response(exc)
        return Response({"days": days})


class SlotMaintenanceView(APIView):
    """Run horizon maintenance now, for all packages or one."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request):  # type: ignore
        body = MaintenanceRequestSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        package_id = body.validated_data.get("package_id")
        if package_id is None:
            return Response(run_horizon_maintenance())

        package = Package.objects.filter(pk=package_id).first()
        if package is None:
            return Response({"detail": "Package not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response({"package_id": package.pk, "days_updated": update_slots_for_package(package)})
