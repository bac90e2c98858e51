"""Webhook receiver and administrator recovery endpoints."""

from __future__ import annotations

import logging

from django.http import JsonResponse  # type: ignore
from django.views.decorators.csrf import csrf_exempt  # type: ignore
from django.views.decorators.http import require_POST  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .gateway import PaymentGatewayError, get_gateway
from .models import PaymentEvent
from .reconciliation import HANDLED_EVENTS
from .recovery import batch_recover, describe_payment, recover_payment, scan_orphaned_payments
from .serializers import BatchRecoverSerializer, OrphanScanQuerySerializer, RecoverPaymentSerializer
from .tasks import process_payment_event

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request):
    """
    Record and enqueue a Stripe event.

    Once the signature checks out the answer is always 2xx: processing
    problems are ours to recover, not the processor's to retry.
    """
    try:
        event = get_gateway().verify_webhook(request.body, request.META.get("HTTP_STRIPE_SIGNATURE", ""))
    except PaymentGatewayError as e:
        logger.warning(f"Rejected webhook: {e}")
        return JsonResponse({"detail": "Invalid signature"}, status=400)

    event_id = event.get("id", "")
    event_type = event.get("type", "")
    if not event_id:
        logger.warning("Webhook without an event id ignored")
        return JsonResponse({"status": "ignored"})

    handled = event_type in HANDLED_EVENTS
    record, created = PaymentEvent.objects.get_or_create(
        event_id=event_id,
        defaults={
            "event_type": event_type,
            "payload": event,
            "status": PaymentEvent.Status.RECEIVED if handled else PaymentEvent.Status.IGNORED,
        },
    )
    if not handled:
        return JsonResponse({"status": "ignored"})
    if not created and record.status != PaymentEvent.Status.FAILED:
        logger.info(f"Duplicate delivery of event {event_id} ({record.status})")
        return JsonResponse({"status": "duplicate"})

    try:
        process_payment_event.delay(record.event_id)
    except Exception as e:
        # Recorded as received; the orphan scan picks the payment up
        logger.error(f"Could not enqueue payment event {event_id}: {e}", exc_info=True)
    return JsonResponse({"status": "received"})


class OrphanScanView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request):  # type: ignore
        query = OrphanScanQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            report = scan_orphaned_payments(**query.validated_data)
        except PaymentGatewayError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(report)


class RecoverPaymentView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def post(self, request):  # type: ignore
        body = RecoverPaymentSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        result = recover_payment(body.validated_data["payment_intent_id"])
        return Response(result, status=status.HTTP_200_OK if result["success"] else status.HTTP_400_BAD_REQUEST)


class BatchRecoverView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def post(self, request):  # type: ignore
        body = BatchRecoverSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        return Response(batch_recover(body.validated_data["payment_intent_ids"]))


class PaymentDiagnosisView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request, payment_id: str):  # type: ignore
        try:
            return Response(describe_payment(payment_id))
        except PaymentGatewayError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
