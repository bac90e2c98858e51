"""Query serializers for slot endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .timeutils import canonical_label


class DayQuerySerializer(serializers.Serializer):
    date = serializers.DateField()


class AvailabilityQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.CharField(max_length=16)
    persons = serializers.IntegerField(min_value=1, default=1)

    def validate_time(self, value: str) -> str:
        try:
            return canonical_label(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc))


class SummaryQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if attrs["start"] > attrs["end"]:
            raise serializers.ValidationError("start must not be after end.")
        return attrs


class MaintenanceRequestSerializer(serializers.Serializer):
    package_id = serializers.IntegerField(required=False)
