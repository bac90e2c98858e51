import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="TimeSlot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.CharField(help_text="Operator-local date, YYYY-MM-DD.", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="time_slots",
                        to="catalog.package",
                    ),
                ),
            ],
            options={
                "ordering": ["date"],
                "constraints": [
                    models.UniqueConstraint(fields=("package", "date"), name="timeslot_unique_package_date"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SlotEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("time", models.CharField(help_text='Departure label, e.g. "08:00 AM".', max_length=8)),
                ("capacity", models.PositiveIntegerField()),
                ("booked_count", models.PositiveIntegerField(default=0)),
                ("minimum_person", models.PositiveSmallIntegerField(default=1)),
                (
                    "slot",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="entries",
                        to="timeslots.timeslot",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(fields=("slot", "time"), name="slotentry_unique_slot_time"),
                    models.CheckConstraint(
                        condition=models.Q(("booked_count__gte", 0)),
                        name="slotentry_booked_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("booked_count__lte", models.F("capacity"))),
                        name="slotentry_booked_within_capacity",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("minimum_person__gte", 1)),
                        name="slotentry_minimum_person_positive",
                    ),
                ],
            },
        ),
    ]
