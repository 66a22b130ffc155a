# src/events/filters.py

from uuid import UUID

from django.db.models import Q
from django.utils import timezone
from ninja import Field, FilterSchema

from events.models import Event, Registration


class EventFilterSchema(FilterSchema):
    category: str | None = None
    status: Event.EventStatus | None = None
    upcoming_only: bool = True

    def filter_upcoming_only(self, upcoming_only: bool) -> Q:
        """Hide events that have already started unless asked otherwise."""
        if upcoming_only:
            return Q(start_date__gt=timezone.now())
        return Q()


class MyRegistrationFilterSchema(FilterSchema):
    status: Registration.RegistrationStatus | None = None
    include_past: bool = False

    def filter_include_past(self, include_past: bool) -> Q:
        """Only registrations for events that have not ended, by default."""
        if not include_past:
            return Q(event__end_date__gte=timezone.now())
        return Q()


class AdminRegistrationFilterSchema(FilterSchema):
    """Filter schema for the staff registration list."""

    status: Registration.RegistrationStatus | None = None
    event_id: UUID | None = Field(None, q="event_id")  # type: ignore[call-overload]
