"""URL routing for the cart."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import CartCheckoutView, CartSummaryView

urlpatterns = [
    path("checkout/", CartCheckoutView.as_view(), name="cart-checkout"),
    path("summary/", CartSummaryView.as_view(), name="cart-summary"),
]
