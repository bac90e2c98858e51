from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Package",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("package_type", models.CharField(choices=[("tour", "Tour"), ("transfer", "Transfer")], max_length=16)),
                ("title", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                (
                    "category",
                    models.CharField(
                        choices=[("shared", "Shared departure"), ("private", "Private / per vehicle")],
                        default="shared",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(choices=[("active", "Active"), ("sold", "Sold out")], default="active", max_length=16),
                ),
                ("minimum_person", models.PositiveSmallIntegerField(default=1)),
                ("maximum_person", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "slot_capacity",
                    models.PositiveIntegerField(
                        help_text="Capacity units per departure: seats, or vehicles for private packages."
                    ),
                ),
                (
                    "departure_times",
                    models.JSONField(default=list, help_text='Departure labels, e.g. ["08:00 AM", "01:30 PM"].'),
                ),
                ("adult_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("child_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("pickup_location", models.CharField(blank=True, max_length=255)),
                (
                    "booked_count",
                    models.PositiveIntegerField(default=0, help_text="Aggregate guests booked across all departures."),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["title"],
            },
        ),
        migrations.CreateModel(
            name="BlackoutDate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("package_type", models.CharField(choices=[("tour", "Tour"), ("transfer", "Transfer")], max_length=16)),
                ("description", models.CharField(blank=True, max_length=255)),
            ],
            options={
                "ordering": ["date"],
            },
        ),
        migrations.AddConstraint(
            model_name="package",
            constraint=models.CheckConstraint(condition=models.Q(minimum_person__gte=1), name="package_minimum_person_positive"),
        ),
        migrations.AddIndex(
            model_name="package",
            index=models.Index(fields=["package_type", "status"], name="catalog_pkg_type_status_idx"),
        ),
        migrations.AddConstraint(
            model_name="blackoutdate",
            constraint=models.UniqueConstraint(fields=("date", "package_type"), name="blackout_unique_date_type"),
        ),
    ]
