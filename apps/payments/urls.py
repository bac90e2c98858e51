"""URL routing for payments."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    BatchRecoverView,
    OrphanScanView,
    PaymentDiagnosisView,
    RecoverPaymentView,
    stripe_webhook,
)

urlpatterns = [
    path("webhook/", stripe_webhook, name="payments-webhook"),
    path("recovery/orphans/", OrphanScanView.as_view(), name="payments-orphans"),
    path("recovery/recover/", RecoverPaymentView.as_view(), name="payments-recover"),
    path("recovery/recover-batch/", BatchRecoverView.as_view(), name="payments-recover-batch"),
    path("recovery/<str:payment_id>/", PaymentDiagnosisView.as_view(), name="payments-diagnosis"),
]
