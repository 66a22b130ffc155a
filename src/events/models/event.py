import typing as t
from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from common.models import TimeStampedModel
from events.service.pricing import resolve_price


class EventQuerySet(models.QuerySet["Event"]):
    def public(self) -> t.Self:
        """Events anyone may browse: public and past the draft stage."""
        return self.filter(is_public=True).exclude(status=Event.EventStatus.DRAFT)

    def needing_status_sweep(self, now: datetime) -> t.Self:
        """Events whose stored status may lag behind the clock."""
        return self.exclude(status__in=Event.TERMINAL_STATUSES).filter(start_date__lte=now)


class EventManager(models.Manager["Event"]):
    def get_queryset(self) -> EventQuerySet:
        """Get base queryset."""
        return EventQuerySet(self.model, using=self._db)

    def public(self) -> EventQuerySet:
        """Shortcut for EventQuerySet.public."""
        return self.get_queryset().public()

    def needing_status_sweep(self, now: datetime) -> EventQuerySet:
        """Shortcut for EventQuerySet.needing_status_sweep."""
        return self.get_queryset().needing_status_sweep(now)



class Event(TimeStampedModel):
    class EventStatus(models.TextChoices):
        DRAFT = "draft"
        PUBLISHED = "published"
        ONGOING = "ongoing"
        FINISHED = "finished"
        CANCELLED = "cancelled"

    TERMINAL_STATUSES = (EventStatus.CANCELLED, EventStatus.FINISHED)
    DEFAULT_MIN_AGE = 13

    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)
    category = models.CharField(max_length=100, blank=True, db_index=True)
    is_public = models.BooleanField(default=True)
    status = models.CharField(choices=EventStatus.choices, max_length=10, default=EventStatus.DRAFT, db_index=True)

    start_date = models.DateTimeField(db_index=True)
    end_date = models.DateTimeField()
    registration_start_date = models.DateTimeField(null=True, blank=True)
    registration_end_date = models.DateTimeField(null=True, blank=True)
    check_in_starts_at = models.DateTimeField(
        null=True, blank=True, help_text="When the door opens. Defaults to shortly before the start date."
    )

    capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    registered_count = models.PositiveIntegerField(
        default=0, editable=False, help_text="Seats held by pending, confirmed and attended registrations."
    )
    requires_approval = models.BooleanField(default=False)

    min_age = models.PositiveSmallIntegerField(default=DEFAULT_MIN_AGE)
    max_age = models.PositiveSmallIntegerField(null=True, blank=True)

    base_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00"), validators=[MinValueValidator(Decimal("0"))]
    )
    youth_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal("0"))]
    )
    senior_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal("0"))]
    )

    objects = EventManager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(registered_count__lte=F("capacity")), name="registered_count_within_capacity"
            ),
            models.CheckConstraint(condition=Q(end_date__gte=F("start_date")), name="event_ends_after_start"),
        ]
        indexes = [
            models.Index(fields=["status", "start_date"], name="idx_event_status_start"),
            models.Index(fields=["is_public", "status"], name="idx_event_public_status"),
        ]
        ordering = ["start_date"]

    def __str__(self) -> str:
        return self.name

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Save the event without ever writing back ``registered_count``.

        The counter is owned by the registration workflows, which move it with row-locked
        ``F()`` updates. An edit to an existing event re-reads it first so validation sees
        the committed value, and leaves it out of the UPDATE.
        """
        if not self._state.adding:
            committed = Event.objects.filter(pk=self.pk).values_list("registered_count", flat=True).first()
            if committed is not None:
                self.registered_count = committed
                update_fields = kwargs.get("update_fields")
                if update_fields is None:
                    update_fields = [f.name for f in self._meta.concrete_fields if not f.primary_key]
                kwargs["update_fields"] = [name for name in update_fields if name != "registered_count"]
        super().save(*args, **kwargs)

    def clean(self) -> None:
        """Validate the time windows, the age band and the capacity."""
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise DjangoValidationError({"end_date": "End date must be after start date."})
        if (
            self.registration_start_date
            and self.registration_end_date
            and self.registration_end_date < self.registration_start_date
        ):
            raise DjangoValidationError(
                {"registration_end_date": "Registration end date must be after registration start date."}
            )
        if self.max_age is not None and self.max_age < self.min_age:
            raise DjangoValidationError({"max_age": "Maximum age must be greater than or equal to minimum age."})
        if self.capacity is not None and self.capacity < self.registered_count:
            raise DjangoValidationError(
                {"capacity": f"Capacity cannot go below the {self.registered_count} seats already taken."}
            )

    # Seats

    @property
    def available_seats(self) -> int:
        """Seats left, never negative."""
        return max(0, self.capacity - self.registered_count)

    @property
    def is_full(self) -> bool:
        """Whether every seat is taken."""
        return self.registered_count >= self.capacity

    # Timing. Every predicate takes the caller's clock reading so a single decision never reads the clock twice.

    def is_finished(self, now: datetime | None = None) -> bool:
        """The event has ended."""
        return self.end_date < (now or timezone.now())

    def is_ongoing(self, now: datetime | None = None) -> bool:
        """The event is running right now."""
        now = now or timezone.now()
        return self.start_date <= now <= self.end_date

    def is_upcoming(self, now: datetime | None = None) -> bool:
        """The event has not started."""
        return self.start_date > (now or timezone.now())

    def has_started(self, now: datetime | None = None) -> bool:
        """The event is ongoing or finished."""
        now = now or timezone.now()
        return self.is_ongoing(now) or self.is_finished(now)

    def is_registration_open(self, now: datetime | None = None) -> bool:
        """Whether a new registration would pass the capacity gate at ``now``."""
        now = now or timezone.now()
        return (
            self.status == self.EventStatus.PUBLISHED
            and self.available_seats > 0
            and not self.is_finished(now)
            and (self.registration_start_date is None or now >= self.registration_start_date)
            and (self.registration_end_date is None or now <= self.registration_end_date)
            and now < self.start_date
        )

    def check_in_opens_at(self) -> datetime:
        """When the door opens for this event."""
        if self.check_in_starts_at:
            return self.check_in_starts_at
        return self.start_date - timedelta(minutes=settings.CHECK_IN_OPENS_BEFORE_START_MINUTES)

    def is_check_in_open(self, now: datetime | None = None) -> bool:
        """Check if check-in is open at ``now``."""
        now = now or timezone.now()
        return self.check_in_opens_at() <= now <= self.end_date

    # Age and price

    def is_age_eligible(self, age: int) -> bool:
        """Whether ``age`` falls inside the event's age band."""
        return age >= self.min_age and (self.max_age is None or age <= self.max_age)

    def price_for_age(self, age: int) -> Decimal:
        """The price a registrant of ``age`` pays."""
        return resolve_price(self.base_price, self.youth_price, self.senior_price, age)

    # Status

    def derive_status(self, now: datetime | None = None) -> str:
        """Compute the status the clock implies.

        ``cancelled`` is manual and terminal. ``draft`` and ``published`` events move to
        ``ongoing`` once started and to ``finished`` once ended.
        """
        if self.status == self.EventStatus.CANCELLED:
            return self.status
        now = now or timezone.now()
        if now >= self.end_date:
            return self.EventStatus.FINISHED
        if now >= self.start_date:
            return self.EventStatus.ONGOING
        return self.status
