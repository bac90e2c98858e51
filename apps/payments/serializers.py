"""Serializers for recovery endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore


class OrphanScanQuerySerializer(serializers.Serializer):
    hours = serializers.IntegerField(min_value=1, max_value=24 * 30, default=24)
    limit = serializers.IntegerField(min_value=1, max_value=500, default=50)


class RecoverPaymentSerializer(serializers.Serializer):
    payment_intent_id = serializers.CharField(max_length=255)


class BatchRecoverSerializer(serializers.Serializer):
    payment_intent_ids = serializers.ListField(
        child=serializers.CharField(max_length=255),
        allow_empty=False,
        max_length=100,
    )
