"""Translate booking rejections into DRF responses."""

from __future__ import annotations

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.domain.errors import BookingRejected, RejectionReason

REJECTION_STATUS = {
    RejectionReason.PACKAGE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RejectionReason.NO_SLOT: status.HTTP_404_NOT_FOUND,
    RejectionReason.INSUFFICIENT_CAPACITY: status.HTTP_409_CONFLICT,
    RejectionReason.DUPLICATE_PAYMENT: status.HTTP_409_CONFLICT,
    RejectionReason.TRANSIENT_STORE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def rejection_response(exc: BookingRejected) -> Response:
    return Response(
        {"reason": exc.reason.value, "detail": exc.detail},
        status=REJECTION_STATUS.get(exc.reason, status.HTTP_400_BAD_REQUEST),
    )
