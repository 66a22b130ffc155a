import typing as t
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from accounts.models import TicketingUser
from events.models import Event, Registration
from events.service.registration_manager import RegistrationManager


class EventFactory:
    """Creates published events a week out, with sensible defaults."""

    def __init__(self) -> None:
        self.counter = 0

    def __call__(self, **kwargs: t.Any) -> Event:
        self.counter += 1
        start = kwargs.pop("start_date", None) or timezone.now() + timedelta(days=7)
        defaults: dict[str, t.Any] = {
            "name": f"Event {self.counter}",
            "status": Event.EventStatus.PUBLISHED,
            "start_date": start,
            "end_date": start + timedelta(hours=3),
            "capacity": 10,
            "base_price": Decimal("1000.00"),
        }
        defaults.update(kwargs)
        return Event.objects.create(**defaults)


@pytest.fixture
def event_factory() -> EventFactory:
    return EventFactory()


@pytest.fixture
def event(event_factory: EventFactory) -> Event:
    return event_factory(name="Spring Gala", location="Main Hall", category="music")


@pytest.fixture
def registration(event: Event, user: TicketingUser) -> Registration:
    """A confirmed registration created through the manager, so the counter is in step."""
    return RegistrationManager(user).register(event.pk).registration
