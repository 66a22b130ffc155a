"""Evaluates the registration gates against an Event snapshot."""

from datetime import datetime

from django.utils import timezone

from events.models import Event

from .gates import REGISTRATION_GATES
from .types import RegistrationEligibility


def check_registration_eligibility(event: Event, age: int | None, now: datetime | None = None) -> RegistrationEligibility:
    """Run every gate in order and stop at the first refusal.

    Pure with respect to the database: it only reads the ``event`` instance it is given.
    Callers that act on the result must pass an instance read under a row lock.
    """
    now = now or timezone.now()
    for gate_class in REGISTRATION_GATES:
        if eligibility := gate_class(event, age, now).check():
            return eligibility
    assert age is not None  # the age gate refuses unknown ages
    return RegistrationEligibility(
        allowed=True,
        event_id=event.pk,
        price=event.price_for_age(age),
        available_seats=event.available_seats,
    )
