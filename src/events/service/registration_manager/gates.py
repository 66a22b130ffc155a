"""Gate classes for registration eligibility.

Each gate performs one check against an Event snapshot and a single clock reading.
Gates run in order; the first one that refuses determines the reported reason.
The age gate runs before the capacity gates so a caller can tell
"you're not allowed" from "it's full".
"""

import abc
from datetime import datetime

from django.utils.translation import gettext as _

from events.enums import ErrorKind, Reason
from events.models import Event

from .types import RegistrationEligibility


class BaseRegistrationGate(abc.ABC):
    """Abstract Base Class for a composable registration check."""

    kind: ErrorKind = ErrorKind.CAPACITY_UNAVAILABLE

    def __init__(self, event: Event, age: int | None, now: datetime) -> None:
        """Initialize the check with the snapshot it evaluates."""
        self.event = event
        self.age = age
        self.now = now

    @abc.abstractmethod
    def check(self) -> RegistrationEligibility | None:
        """Perform the check.

        Returns:
            RegistrationEligibility if this gate refuses, None to continue to the next gate.
        """

    def refuse(self, reason: Reason) -> RegistrationEligibility:
        """Build a refusal for this gate."""
        return RegistrationEligibility(
            allowed=False,
            event_id=self.event.pk,
            kind=self.kind,
            reason=reason.code,
            message=_(reason),
            available_seats=self.event.available_seats,
        )


class AgeGate(BaseRegistrationGate):
    """Gate #1: the registrant's age must sit inside the event's age band."""

    kind = ErrorKind.AGE_INELIGIBLE

    def check(self) -> RegistrationEligibility | None:
        """Check min and max age."""
        if self.age is None:
            return self.refuse(Reason.AGE_UNKNOWN)
        if self.age < self.event.min_age:
            return self.refuse(Reason.TOO_YOUNG)
        if self.event.max_age is not None and self.age > self.event.max_age:
            return self.refuse(Reason.TOO_OLD)
        return None


class PublishedGate(BaseRegistrationGate):
    """Gate #2: only published events take registrations."""

    def check(self) -> RegistrationEligibility | None:
        """Check the stored status. Timing is left to the later gates."""
        if self.event.status != Event.EventStatus.PUBLISHED:
            return self.refuse(Reason.NOT_PUBLISHED)
        return None


class AvailabilityGate(BaseRegistrationGate):
    """Gate #3: at least one seat must be free."""

    def check(self) -> RegistrationEligibility | None:
        """Check the seat counter."""
        if self.event.available_seats <= 0:
            return self.refuse(Reason.FULL)
        return None


class EventFinishedGate(BaseRegistrationGate):
    """Gate #4: the event must not have ended."""

    def check(self) -> RegistrationEligibility | None:
        """Check the end date."""
        if self.event.is_finished(self.now):
            return self.refuse(Reason.EVENT_ALREADY_FINISHED)
        return None


class RegistrationStartGate(BaseRegistrationGate):
    """Gate #5: registration must have opened. No start bound means always open."""

    def check(self) -> RegistrationEligibility | None:
        """Check the registration start date."""
        if self.event.registration_start_date and self.now < self.event.registration_start_date:
            return self.refuse(Reason.REGISTRATION_NOT_STARTED)
        return None


class RegistrationWindowGate(BaseRegistrationGate):
    """Gate #6: registration closes at its end date and, at the latest, when the event starts."""

    def check(self) -> RegistrationEligibility | None:
        """Check the registration end date and the event start."""
        if self.event.registration_end_date and self.now > self.event.registration_end_date:
            return self.refuse(Reason.REGISTRATION_WINDOW_CLOSED)
        if self.now >= self.event.start_date:
            return self.refuse(Reason.REGISTRATION_WINDOW_CLOSED)
        return None


AGE_GATES: list[type[BaseRegistrationGate]] = [AgeGate]

CAPACITY_GATES: list[type[BaseRegistrationGate]] = [
    PublishedGate,
    AvailabilityGate,
    EventFinishedGate,
    RegistrationStartGate,
    RegistrationWindowGate,
]

REGISTRATION_GATES: list[type[BaseRegistrationGate]] = [*AGE_GATES, *CAPACITY_GATES]
