import secrets
import typing as t

from django.conf import settings
from django.db import models
from django.db.models import Q

from common.models import TimeStampedModel

from .event import Event

TICKET_CODE_BYTES = 24


def generate_ticket_code() -> str:
    """A fresh opaque ticket code: 32 URL-safe characters."""
    return secrets.token_urlsafe(TICKET_CODE_BYTES)


class RegistrationQuerySet(models.QuerySet["Registration"]):
    def holding_seat(self) -> t.Self:
        """Registrations that occupy a seat."""
        return self.filter(status__in=Registration.SEAT_HOLDING_STATUSES)

    def full(self) -> t.Self:
        """Registrations with event and user joined."""
        return self.select_related("event", "user", "checked_in_by")


class RegistrationManager(models.Manager["Registration"]):
    def get_queryset(self) -> RegistrationQuerySet:
        """Get base queryset."""
        return RegistrationQuerySet(self.model, using=self._db)

    def holding_seat(self) -> RegistrationQuerySet:
        """Shortcut for RegistrationQuerySet.holding_seat."""
        return self.get_queryset().holding_seat()

    def full(self) -> RegistrationQuerySet:
        """Shortcut for RegistrationQuerySet.full."""
        return self.get_queryset().full()


class Registration(TimeStampedModel):
    """A person's seat at an event.

    Rows are never deleted; a canceled registration stays as an audit record.
    """

    class RegistrationStatus(models.TextChoices):
        PENDING = "pending"
        CONFIRMED = "confirmed"
        ATTENDED = "attended"
        CANCELED = "canceled"

    SEAT_HOLDING_STATUSES = (RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED, RegistrationStatus.ATTENDED)
    TERMINAL_STATUSES = (RegistrationStatus.ATTENDED, RegistrationStatus.CANCELED)

    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="registrations")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="registrations")
    status = models.CharField(
        choices=RegistrationStatus.choices, max_length=10, default=RegistrationStatus.CONFIRMED, db_index=True
    )
    ticket_code = models.CharField(max_length=64, unique=True, editable=False, default=generate_ticket_code)
    price = models.DecimalField(max_digits=10, decimal_places=2, editable=False)
    attended_at = models.DateTimeField(null=True, blank=True, editable=False)
    checked_in_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        editable=False,
        related_name="checked_in_registrations",
    )
    approved_at = models.DateTimeField(null=True, blank=True, editable=False)
    canceled_at = models.DateTimeField(null=True, blank=True, editable=False)

    objects = RegistrationManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["event", "user"],
                condition=Q(status__in=["pending", "confirmed", "attended"]),
                name="unique_active_registration_per_event_user",
            ),
        ]
        indexes = [
            models.Index(fields=["event", "status"], name="idx_registration_event_status"),
            models.Index(fields=["user", "status"], name="idx_registration_user_status"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.user_id} @ {self.event_id} ({self.status})"

    @property
    def holds_seat(self) -> bool:
        """Whether this registration counts against the event's capacity."""
        return self.status in self.SEAT_HOLDING_STATUSES
