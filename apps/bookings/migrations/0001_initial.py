from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_code", models.CharField(editable=False, max_length=12, unique=True)),
                (
                    "package_type",
                    models.CharField(choices=[("tour", "Tour"), ("transfer", "Transfer")], max_length=16),
                ),
                ("package_title", models.CharField(blank=True, max_length=255)),
                ("date", models.CharField(help_text="Operator-local date, YYYY-MM-DD.", max_length=10)),
                ("time", models.CharField(max_length=8)),
                ("adults", models.PositiveSmallIntegerField(default=1)),
                ("children", models.PositiveSmallIntegerField(default=0)),
                (
                    "occupancy",
                    models.PositiveIntegerField(default=0, help_text="Capacity units this booking holds on its slot."),
                ),
                (
                    "occupancy_committed",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the occupancy was actually applied to the slot.",
                    ),
                ),
                ("contact_name", models.CharField(blank=True, max_length=255)),
                ("contact_email", models.EmailField(blank=True, max_length=254)),
                ("contact_phone", models.CharField(blank=True, max_length=32)),
                ("pickup_location", models.CharField(blank=True, max_length=255)),
                ("special_requests", models.TextField(blank=True)),
                ("payment_intent_id", models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ("checkout_session_id", models.CharField(blank=True, db_index=True, max_length=255)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("succeeded", "Succeeded"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("bank_charge", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="MYR", max_length=3)),
                ("reconciled_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("public", "Public booking form"),
                            ("admin", "Administrator"),
                            ("cart", "Cart checkout"),
                            ("reconstructed", "Rebuilt from payment"),
                        ],
                        default="public",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="customers.customer",
                    ),
                ),
                (
                    "package",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="catalog.package",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["package", "date", "time"], name="booking_slot_idx"),
                    models.Index(fields=["status", "date"], name="booking_status_date_idx"),
                ],
            },
        ),
    ]
