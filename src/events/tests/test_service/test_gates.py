"""Tests for the registration eligibility gates and the order they run in."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from events.enums import ErrorKind, Reason
from events.models import Event
from events.service.registration_manager import check_registration_eligibility
from events.tests.conftest import EventFactory

pytestmark = pytest.mark.django_db


def test_eligible_registrant_gets_price_and_seats(event_factory: EventFactory) -> None:
    event = event_factory(youth_price=Decimal("500.00"))

    eligibility = check_registration_eligibility(event, 20)

    assert eligibility.allowed is True
    assert eligibility.event_id == event.pk
    assert eligibility.price == Decimal("500.00")
    assert eligibility.available_seats == 10
    assert eligibility.kind is None
    assert eligibility.reason is None


@pytest.mark.parametrize(
    "age,reason",
    [(16, Reason.TOO_YOUNG), (41, Reason.TOO_OLD), (None, Reason.AGE_UNKNOWN)],
)
def test_age_gate(event_factory: EventFactory, age: int | None, reason: Reason) -> None:
    event = event_factory(min_age=18, max_age=40)

    eligibility = check_registration_eligibility(event, age)

    assert eligibility.allowed is False
    assert eligibility.kind == ErrorKind.AGE_INELIGIBLE
    assert eligibility.reason == reason.code
    assert eligibility.price is None


def test_age_is_checked_before_capacity(event_factory: EventFactory) -> None:
    """An underage registrant learns about the age band, not that the event is full."""
    event = event_factory(min_age=18, capacity=1)
    event.registered_count = 1

    eligibility = check_registration_eligibility(event, 16)

    assert eligibility.kind == ErrorKind.AGE_INELIGIBLE


@pytest.mark.parametrize("status", [Event.EventStatus.DRAFT, Event.EventStatus.CANCELLED, Event.EventStatus.ONGOING])
def test_only_published_events_take_registrations(event_factory: EventFactory, status: Event.EventStatus) -> None:
    event = event_factory(status=status)

    eligibility = check_registration_eligibility(event, 30)

    assert eligibility.kind == ErrorKind.CAPACITY_UNAVAILABLE
    assert eligibility.reason == Reason.NOT_PUBLISHED.code


def test_full_event(event_factory: EventFactory) -> None:
    event = event_factory(capacity=2)
    event.registered_count = 2

    eligibility = check_registration_eligibility(event, 30)

    assert eligibility.kind == ErrorKind.CAPACITY_UNAVAILABLE
    assert eligibility.reason == Reason.FULL.code
    assert eligibility.available_seats == 0


def test_finished_event(event: Event) -> None:
    eligibility = check_registration_eligibility(event, 30, now=event.end_date + timedelta(minutes=1))

    assert eligibility.reason == Reason.EVENT_ALREADY_FINISHED.code


def test_full_is_reported_before_finished(event_factory: EventFactory) -> None:
    event = event_factory(capacity=1)
    event.registered_count = 1

    eligibility = check_registration_eligibility(event, 30, now=event.end_date + timedelta(minutes=1))

    assert eligibility.reason == Reason.FULL.code


def test_registration_not_started(event_factory: EventFactory) -> None:
    event = event_factory(registration_start_date=timezone.now() + timedelta(days=1))

    eligibility = check_registration_eligibility(event, 30)

    assert eligibility.reason == Reason.REGISTRATION_NOT_STARTED.code


def test_registration_start_is_inclusive(event_factory: EventFactory) -> None:
    opens = timezone.now() + timedelta(days=1)
    event = event_factory(registration_start_date=opens)

    assert check_registration_eligibility(event, 30, now=opens).allowed is True


def test_registration_window_closed(event_factory: EventFactory) -> None:
    event = event_factory(registration_end_date=timezone.now() - timedelta(minutes=1))

    eligibility = check_registration_eligibility(event, 30)

    assert eligibility.reason == Reason.REGISTRATION_WINDOW_CLOSED.code


def test_registration_closes_when_the_event_starts(event: Event) -> None:
    eligibility = check_registration_eligibility(event, 30, now=event.start_date)

    assert eligibility.allowed is False
    assert eligibility.reason == Reason.REGISTRATION_WINDOW_CLOSED.code


def test_messages_are_human_readable(event_factory: EventFactory) -> None:
    event = event_factory(min_age=18)

    eligibility = check_registration_eligibility(event, 16)

    assert eligibility.message == str(Reason.TOO_YOUNG)
