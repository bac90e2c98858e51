"""API views for the booking domain."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.domain.errors import BookingRejected
from shared.infrastructure.api import rejection_response

from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    ConfirmPaymentSerializer,
    GuestUpdateSerializer,
)
from .services import (
    CreateBookingCommand,
    confirm_payment,
    create_booking_direct,
    create_public_booking,
    delete_booking,
    update_booking_guests,
)


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Public booking creation; everything else is for administrators."""

    queryset = Booking.objects.select_related("package", "customer").all()
    serializer_class = BookingSerializer
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action == "create":
            return [permissions.AllowAny()]
        return [permissions.IsAdminUser()]

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = CreateBookingCommand(**serializer.validated_data)
        try:
            if request.user.is_staff:
                command.source = Booking.Source.ADMIN
                booking = create_booking_direct(command, verify_payment=True)
            else:
                booking = create_public_booking(command)
        except BookingRejected as exc:
            return rejection_response(exc)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        serializer = GuestUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = update_booking_guests(booking.pk, **serializer.validated_data)
        except BookingRejected as exc:
            return rejection_response(exc)
        return Response(BookingSerializer(booking).data)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        delete_booking(booking.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = confirm_payment(booking.pk, serializer.validated_data.get("payment_intent_id") or None)
        except BookingRejected as exc:
            return rejection_response(exc)
        return Response({"status": booking.status, "payment_status": booking.payment_status})
