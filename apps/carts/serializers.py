"""Serializers for cart checkout."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore


class ContactInfoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    whatsapp = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")


class CartCheckoutSerializer(serializers.Serializer):
    email = serializers.EmailField()
    contact_info = ContactInfoSerializer()
    checkout_session_id = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class CartSummaryQuerySerializer(serializers.Serializer):
    email = serializers.EmailField()
