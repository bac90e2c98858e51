"""Cart checkout endpoints."""

from __future__ import annotations

from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .serializers import CartCheckoutSerializer, CartSummaryQuerySerializer
from .services import CartCheckoutError, ContactInfo, book_cart_items, cart_summary


class CartCheckoutView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = CartCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            result = book_cart_items(
                data["email"],
                ContactInfo(**data["contact_info"]),
                checkout_session_id=data["checkout_session_id"],
            )
        except CartCheckoutError as exc:
            return Response(
                {"success": False, "booking_ids": [], "errors": [str(exc)], "warnings": []},
                status=status.HTTP_404_NOT_FOUND,
            )
        code = status.HTTP_201_CREATED if result.success else status.HTTP_400_BAD_REQUEST
        return Response(result.to_dict(), status=code)


class CartSummaryView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        query = CartSummaryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            return Response(cart_summary(query.validated_data["email"]))
        except CartCheckoutError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
