"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.catalog.models import PackageType
from apps.timeslots.timeutils import canonical_label

from .models import Booking


class BookingCreateSerializer(serializers.Serializer):
    """Public booking request for one departure."""

    package_type = serializers.ChoiceField(choices=PackageType.choices)
    package_id = serializers.IntegerField(min_value=1)
    date = serializers.DateField()
    time = serializers.CharField(max_length=16)
    adults = serializers.IntegerField(min_value=0, default=1)
    children = serializers.IntegerField(min_value=0, default=0)
    contact_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    contact_email = serializers.EmailField()
    contact_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    pickup_location = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")
    payment_intent_id = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate_time(self, value: str) -> str:
        try:
            return canonical_label(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc))

    def validate(self, attrs):  # type: ignore
        if attrs["adults"] + attrs["children"] < 1:
            raise serializers.ValidationError("At least one guest is required.")
        attrs["date"] = attrs["date"].isoformat()
        attrs["payment_intent_id"] = attrs["payment_intent_id"].strip() or None
        return attrs


class GuestUpdateSerializer(serializers.Serializer):
    adults = serializers.IntegerField(min_value=0)
    children = serializers.IntegerField(min_value=0, default=0)


class ConfirmPaymentSerializer(serializers.Serializer):
    payment_intent_id = serializers.CharField(max_length=255, required=False, allow_blank=True)


class BookingSerializer(serializers.ModelSerializer):
    """Read representation of a booking."""

    package_id = serializers.ReadOnlyField(source="package.id")
    total_guests = serializers.ReadOnlyField()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "package_id",
            "package_type",
            "package_title",
            "date",
            "time",
            "adults",
            "children",
            "total_guests",
            "occupancy",
            "contact_name",
            "contact_email",
            "contact_phone",
            "pickup_location",
            "payment_intent_id",
            "payment_status",
            "amount",
            "bank_charge",
            "total_amount",
            "currency",
            "status",
            "source",
            "created_at",
        ]
        read_only_fields = fields
