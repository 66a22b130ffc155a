"""Tests for the RegistrationManager: reserving and releasing seats."""

import typing as t
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from django.core import mail
from django.db import OperationalError

from accounts.models import TicketingUser
from events.enums import ErrorKind, Reason
from events.exceptions import (
    AlreadyAttendedError,
    AlreadyCanceledError,
    EventNotFoundError,
    EventStartedError,
    RegistrationNotFoundError,
    TransactionConflictError,
)
from events.models import Event, Registration
from events.service.registration_manager import (
    RegistrationIneligibleError,
    RegistrationManager,
    retry_on_conflict,
)
from events.tests.conftest import EventFactory

pytestmark = pytest.mark.django_db


def _seat_holders(event: Event) -> int:
    return Registration.objects.holding_seat().filter(event=event).count()


class TestRegister:
    def test_register_confirms_and_takes_a_seat(self, event: Event, user: TicketingUser) -> None:
        outcome = RegistrationManager(user).register(event.pk)

        assert outcome.created is True
        registration = outcome.registration
        assert registration.status == Registration.RegistrationStatus.CONFIRMED
        assert registration.price == Decimal("1000.00")
        assert registration.ticket_code
        event.refresh_from_db()
        assert event.registered_count == 1

    def test_register_is_pending_when_approval_is_required(
        self, event_factory: EventFactory, user: TicketingUser
    ) -> None:
        event = event_factory(requires_approval=True)

        outcome = RegistrationManager(user).register(event.pk)

        assert outcome.registration.status == Registration.RegistrationStatus.PENDING
        event.refresh_from_db()
        assert event.registered_count == 1

    def test_register_uses_the_age_price(self, event_factory: EventFactory, user_factory: t.Any) -> None:
        event = event_factory(youth_price=Decimal("500.00"), senior_price=Decimal("300.00"))

        young = RegistrationManager(user_factory(age=20)).register(event.pk).registration
        senior = RegistrationManager(user_factory(age=65)).register(event.pk).registration

        assert young.price == Decimal("500.00")
        assert senior.price == Decimal("300.00")

    def test_explicit_age_overrides_the_stored_one(self, event_factory: EventFactory, user: TicketingUser) -> None:
        event = event_factory(youth_price=Decimal("500.00"))

        registration = RegistrationManager(user).register(event.pk, age=20).registration

        assert registration.price == Decimal("500.00")

    def test_register_twice_returns_the_existing_registration(self, event: Event, user: TicketingUser) -> None:
        manager = RegistrationManager(user)
        first = manager.register(event.pk)

        second = manager.register(event.pk)

        assert second.created is False
        assert second.registration.pk == first.registration.pk
        event.refresh_from_db()
        assert event.registered_count == 1
        assert Registration.objects.filter(event=event, user=user).count() == 1

    def test_underage_registrant_is_refused_without_side_effects(
        self, event_factory: EventFactory, user_factory: t.Any
    ) -> None:
        event = event_factory(min_age=18)
        teenager = user_factory(age=16)

        with pytest.raises(RegistrationIneligibleError) as exc_info:
            RegistrationManager(teenager).register(event.pk)

        assert exc_info.value.kind == ErrorKind.AGE_INELIGIBLE
        assert exc_info.value.eligibility.reason == Reason.TOO_YOUNG.code
        assert not Registration.objects.filter(event=event).exists()
        event.refresh_from_db()
        assert event.registered_count == 0

    def test_unknown_age_is_refused(self, event: Event, user_factory: t.Any) -> None:
        with pytest.raises(RegistrationIneligibleError) as exc_info:
            RegistrationManager(user_factory(age=None)).register(event.pk)

        assert exc_info.value.eligibility.reason == Reason.AGE_UNKNOWN.code

    def test_last_seat_goes_to_the_first_caller(self, event_factory: EventFactory, user_factory: t.Any) -> None:
        event = event_factory(capacity=1)

        RegistrationManager(user_factory()).register(event.pk)
        with pytest.raises(RegistrationIneligibleError) as exc_info:
            RegistrationManager(user_factory()).register(event.pk)

        assert exc_info.value.kind == ErrorKind.CAPACITY_UNAVAILABLE
        assert exc_info.value.eligibility.reason == Reason.FULL.code
        event.refresh_from_db()
        assert event.registered_count == 1
        assert _seat_holders(event) == 1

    def test_unknown_event(self, user: TicketingUser) -> None:
        with pytest.raises(EventNotFoundError):
            RegistrationManager(user).register(uuid4())

    def test_registration_after_cancel_creates_a_new_row(self, event: Event, user: TicketingUser) -> None:
        manager = RegistrationManager(user)
        first = manager.register(event.pk).registration
        manager.cancel(first.pk)

        second = manager.register(event.pk)

        assert second.created is True
        assert second.registration.pk != first.pk
        event.refresh_from_db()
        assert event.registered_count == 1

    def test_lock_timeout_becomes_a_transaction_conflict(self, event: Event, user: TicketingUser) -> None:
        with patch.object(RegistrationManager, "_register", side_effect=OperationalError("lock timeout")):
            with pytest.raises(TransactionConflictError) as exc_info:
                RegistrationManager(user).register(event.pk)

        assert exc_info.value.retryable is True


class TestNotification:
    def test_confirmation_email_is_sent_after_commit(
        self,
        event: Event,
        user: TicketingUser,
        django_capture_on_commit_callbacks: t.Any,
        mailoutbox: list[mail.EmailMessage],
    ) -> None:
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            RegistrationManager(user).register(event.pk)

        assert len(callbacks) == 1
        assert len(mailoutbox) == 1
        message = mailoutbox[0]
        assert message.to == [user.email]
        assert event.name in message.subject
        assert message.attachments[0][0] == "ticket.png"

    def test_refused_registration_sends_nothing(
        self,
        event_factory: EventFactory,
        user_factory: t.Any,
        django_capture_on_commit_callbacks: t.Any,
        mailoutbox: list[mail.EmailMessage],
    ) -> None:
        event = event_factory(min_age=18)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(RegistrationIneligibleError):
                RegistrationManager(user_factory(age=16)).register(event.pk)

        assert callbacks == []
        assert mailoutbox == []

    def test_notification_failure_does_not_fail_the_registration(
        self,
        event: Event,
        user: TicketingUser,
        django_capture_on_commit_callbacks: t.Any,
    ) -> None:
        with patch(
            "events.service.notification_service.send_registration_confirmation.delay",
            side_effect=RuntimeError("broker down"),
        ) as mock_delay:
            with django_capture_on_commit_callbacks(execute=True):
                outcome = RegistrationManager(user).register(event.pk)

        mock_delay.assert_called_once_with(str(outcome.registration.pk))
        assert Registration.objects.filter(pk=outcome.registration.pk).exists()


class TestCancel:
    def test_cancel_releases_exactly_one_seat(self, registration: Registration, user: TicketingUser) -> None:
        event = registration.event

        canceled = RegistrationManager(user).cancel(registration.pk)

        assert canceled.status == Registration.RegistrationStatus.CANCELED
        assert canceled.canceled_at is not None
        event.refresh_from_db()
        assert event.registered_count == 0

    def test_second_cancel_is_refused_and_counter_stays(self, registration: Registration, user: TicketingUser) -> None:
        manager = RegistrationManager(user)
        manager.cancel(registration.pk)

        with pytest.raises(AlreadyCanceledError):
            manager.cancel(registration.pk)

        registration.event.refresh_from_db()
        assert registration.event.registered_count == 0

    def test_cancel_after_start_is_refused(self, registration: Registration, user: TicketingUser) -> None:
        now = registration.event.start_date + timedelta(minutes=5)

        with pytest.raises(EventStartedError):
            RegistrationManager(user, now=now).cancel(registration.pk)

        registration.refresh_from_db()
        assert registration.status == Registration.RegistrationStatus.CONFIRMED

    def test_cancel_attended_registration_is_refused(self, registration: Registration, user: TicketingUser) -> None:
        Registration.objects.filter(pk=registration.pk).update(status=Registration.RegistrationStatus.ATTENDED)

        with pytest.raises(AlreadyAttendedError):
            RegistrationManager(user).cancel(registration.pk)

    def test_other_users_registration_is_not_found(
        self, registration: Registration, other_user: TicketingUser
    ) -> None:
        with pytest.raises(RegistrationNotFoundError):
            RegistrationManager(other_user).cancel(registration.pk)

    def test_admin_cancel_skips_the_ownership_check(
        self, registration: Registration, staff_user: TicketingUser
    ) -> None:
        canceled = RegistrationManager(staff_user).cancel(registration.pk, as_admin=True)

        assert canceled.status == Registration.RegistrationStatus.CANCELED
        registration.event.refresh_from_db()
        assert registration.event.registered_count == 0

    def test_admin_cancel_still_respects_the_start_date(
        self, registration: Registration, staff_user: TicketingUser
    ) -> None:
        now = registration.event.start_date + timedelta(minutes=5)

        with pytest.raises(EventStartedError):
            RegistrationManager(staff_user, now=now).cancel(registration.pk, as_admin=True)

    def test_counter_never_goes_negative(self, registration: Registration, user: TicketingUser) -> None:
        Event.objects.filter(pk=registration.event_id).update(registered_count=0)

        RegistrationManager(user).cancel(registration.pk)

        registration.event.refresh_from_db()
        assert registration.event.registered_count == 0


def test_counter_matches_seat_holders_through_a_lifecycle(event_factory: EventFactory, user_factory: t.Any) -> None:
    event = event_factory(capacity=3)
    users = [user_factory() for _ in range(3)]
    registrations = [RegistrationManager(u).register(event.pk).registration for u in users]

    RegistrationManager(users[0]).cancel(registrations[0].pk)
    RegistrationManager(user_factory()).register(event.pk)
    RegistrationManager(users[1]).cancel(registrations[1].pk)

    event.refresh_from_db()
    assert event.registered_count == _seat_holders(event) == 2
    assert event.registered_count <= event.capacity


class TestRetryOnConflict:
    def test_retries_until_success(self) -> None:
        calls = []

        def flaky() -> str:
            calls.append(1)
            if len(calls) < 3:
                raise TransactionConflictError()
            return "ok"

        assert retry_on_conflict(flaky, attempts=3) == "ok"
        assert len(calls) == 3

    def test_gives_up_after_the_last_attempt(self) -> None:
        calls = []

        def always_conflicting() -> None:
            calls.append(1)
            raise TransactionConflictError()

        with pytest.raises(TransactionConflictError):
            retry_on_conflict(always_conflicting, attempts=2)
        assert len(calls) == 2

    def test_other_refusals_are_not_retried(self) -> None:
        calls = []

        def refused() -> None:
            calls.append(1)
            raise AlreadyCanceledError()

        with pytest.raises(AlreadyCanceledError):
            retry_on_conflict(refused, attempts=3)
        assert len(calls) == 1
