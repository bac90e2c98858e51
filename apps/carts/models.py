"""Cart models."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore

from apps.catalog.models import Package, PackageType
from apps.customers.models import Customer


class Cart(models.Model):
    customer = models.OneToOneField(Customer, on_delete=models.CASCADE, related_name="cart")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Cart of {self.customer_id}"


class CartItem(models.Model):
    """A departure the customer intends to book. The package may vanish later."""

    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    package = models.ForeignKey(
        Package,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    package_type = models.CharField(max_length=16, choices=PackageType.choices)
    package_title = models.CharField(max_length=255)
    date = models.CharField(max_length=10)
    time = models.CharField(max_length=8)
    adults = models.PositiveSmallIntegerField(default=1)
    children = models.PositiveSmallIntegerField(default=0)
    pickup_location = models.CharField(max_length=255, blank=True)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["added_at", "id"]

    def __str__(self) -> str:
        return f"{self.package_title} {self.date} {self.time}"
