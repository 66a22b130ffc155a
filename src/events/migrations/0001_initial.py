import decimal
import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import events.models.registration


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("category", models.CharField(blank=True, db_index=True, max_length=100)),
                ("is_public", models.BooleanField(default=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("ongoing", "Ongoing"),
                            ("finished", "Finished"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=10,
                    ),
                ),
                ("start_date", models.DateTimeField(db_index=True)),
                ("end_date", models.DateTimeField()),
                ("registration_start_date", models.DateTimeField(blank=True, null=True)),
                ("registration_end_date", models.DateTimeField(blank=True, null=True)),
                (
                    "check_in_starts_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the door opens. Defaults to shortly before the start date.",
                        null=True,
                    ),
                ),
                ("capacity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                (
                    "registered_count",
                    models.PositiveIntegerField(
                        default=0,
                        editable=False,
                        help_text="Seats held by pending, confirmed and attended registrations.",
                    ),
                ),
                ("requires_approval", models.BooleanField(default=False)),
                ("min_age", models.PositiveSmallIntegerField(default=13)),
                ("max_age", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "base_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))],
                    ),
                ),
                (
                    "youth_price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))],
                    ),
                ),
                (
                    "senior_price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))],
                    ),
                ),
            ],
            options={
                "ordering": ["start_date"],
                "indexes": [
                    models.Index(fields=["status", "start_date"], name="idx_event_status_start"),
                    models.Index(fields=["is_public", "status"], name="idx_event_public_status"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("registered_count__lte", models.F("capacity"))),
                        name="registered_count_within_capacity",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gte", models.F("start_date"))),
                        name="event_ends_after_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("attended", "Attended"),
                            ("canceled", "Canceled"),
                        ],
                        db_index=True,
                        default="confirmed",
                        max_length=10,
                    ),
                ),
                (
                    "ticket_code",
                    models.CharField(
                        default=events.models.registration.generate_ticket_code,
                        editable=False,
                        max_length=64,
                        unique=True,
                    ),
                ),
                ("price", models.DecimalField(decimal_places=2, editable=False, max_digits=10)),
                ("attended_at", models.DateTimeField(blank=True, editable=False, null=True)),
                ("approved_at", models.DateTimeField(blank=True, editable=False, null=True)),
                ("canceled_at", models.DateTimeField(blank=True, editable=False, null=True)),
                (
                    "checked_in_by",
                    models.ForeignKey(
                        blank=True,
                        editable=False,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="checked_in_registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["event", "status"], name="idx_registration_event_status"),
                    models.Index(fields=["user", "status"], name="idx_registration_user_status"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["pending", "confirmed", "attended"])),
                        fields=("event", "user"),
                        name="unique_active_registration_per_event_user",
                    ),
                ],
            },
        ),
    ]
