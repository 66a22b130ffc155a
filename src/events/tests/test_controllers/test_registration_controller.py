"""Tests for the attendee's own registrations: listing, canceling, QR tickets."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core import mail
from django.shortcuts import reverse  # type: ignore[attr-defined]
from django.test.client import Client
from django.utils import timezone

from accounts.models import TicketingUser
from common.signing import unsign_ticket_payload
from events.models import Event, Registration
from events.service.registration_manager import RegistrationManager
from events.tests.conftest import EventFactory

pytestmark = pytest.mark.django_db


class TestListMyRegistrations:
    def test_lists_only_my_registrations(
        self, user_client: Client, registration: Registration, other_user: TicketingUser, event_factory: EventFactory
    ) -> None:
        RegistrationManager(other_user).register(event_factory().pk)

        response = user_client.get(reverse("api:list_my_registrations"))

        assert response.status_code == 200
        results = response.json()["results"]
        assert [r["id"] for r in results] == [str(registration.pk)]
        assert results[0]["event"]["name"] == registration.event.name

    def test_filter_by_status(self, user_client: Client, registration: Registration, user: TicketingUser) -> None:
        RegistrationManager(user).cancel(registration.pk)

        confirmed = user_client.get(reverse("api:list_my_registrations"), {"status": "confirmed"})
        canceled = user_client.get(reverse("api:list_my_registrations"), {"status": "canceled"})

        assert confirmed.json()["count"] == 0
        assert canceled.json()["count"] == 1

    def test_past_events_are_hidden_by_default(
        self, user_client: Client, user: TicketingUser, event_factory: EventFactory
    ) -> None:
        event = event_factory()
        RegistrationManager(user).register(event.pk)
        Event.objects.filter(pk=event.pk).update(
            start_date=timezone.now() - timedelta(days=2), end_date=timezone.now() - timedelta(days=1)
        )

        default = user_client.get(reverse("api:list_my_registrations"))
        with_past = user_client.get(reverse("api:list_my_registrations"), {"include_past": "true"})

        assert default.json()["count"] == 0
        assert with_past.json()["count"] == 1

    def test_requires_authentication(self, client: Client) -> None:
        assert client.get(reverse("api:list_my_registrations")).status_code == 401


class TestGetMyRegistration:
    def test_get(self, user_client: Client, registration: Registration) -> None:
        response = user_client.get(reverse("api:get_my_registration", kwargs={"registration_id": registration.pk}))

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

    def test_someone_elses_registration_is_not_found(
        self, other_user_client: Client, registration: Registration
    ) -> None:
        response = other_user_client.get(
            reverse("api:get_my_registration", kwargs={"registration_id": registration.pk})
        )

        assert response.status_code == 404


class TestCancelMyRegistration:
    def test_cancel_releases_the_seat(self, user_client: Client, registration: Registration) -> None:
        response = user_client.post(
            reverse("api:cancel_my_registration", kwargs={"registration_id": registration.pk})
        )

        assert response.status_code == 200
        assert response.json()["status"] == "canceled"
        assert response.json()["canceled_at"] is not None
        registration.event.refresh_from_db()
        assert registration.event.registered_count == 0

    def test_cancel_twice(self, user_client: Client, registration: Registration) -> None:
        url = reverse("api:cancel_my_registration", kwargs={"registration_id": registration.pk})
        user_client.post(url)

        response = user_client.post(url)

        assert response.status_code == 409
        assert response.json()["kind"] == "already_canceled"
        registration.event.refresh_from_db()
        assert registration.event.registered_count == 0

    def test_cancel_after_start(self, user_client: Client, registration: Registration) -> None:
        Event.objects.filter(pk=registration.event_id).update(start_date=timezone.now() - timedelta(minutes=5))

        response = user_client.post(
            reverse("api:cancel_my_registration", kwargs={"registration_id": registration.pk})
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "event_started"

    def test_cannot_cancel_someone_elses(self, other_user_client: Client, registration: Registration) -> None:
        response = other_user_client.post(
            reverse("api:cancel_my_registration", kwargs={"registration_id": registration.pk})
        )

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"
        registration.refresh_from_db()
        assert registration.status == Registration.RegistrationStatus.CONFIRMED


class TestQRCode:
    def test_qr_code(self, user_client: Client, registration: Registration) -> None:
        response = user_client.get(
            reverse("api:my_registration_qr_code", kwargs={"registration_id": registration.pk})
        )

        assert response.status_code == 200
        data = response.json()
        assert unsign_ticket_payload(data["payload"]) == registration.ticket_code
        assert data["qr_code"].startswith("data:image/png;base64,")

    def test_no_qr_code_for_canceled_registration(
        self, user_client: Client, registration: Registration, user: TicketingUser
    ) -> None:
        RegistrationManager(user).cancel(registration.pk)

        response = user_client.get(
            reverse("api:my_registration_qr_code", kwargs={"registration_id": registration.pk})
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "already_canceled"


class TestResendConfirmation:
    def test_resend(
        self, user_client: Client, registration: Registration, mailoutbox: list[mail.EmailMessage]
    ) -> None:
        response = user_client.post(
            reverse("api:resend_registration_confirmation", kwargs={"registration_id": registration.pk})
        )

        assert response.status_code == 200
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [registration.user.email]

    def test_resend_for_canceled_registration(
        self, user_client: Client, registration: Registration, user: TicketingUser
    ) -> None:
        RegistrationManager(user).cancel(registration.pk)

        with patch("events.service.notification_service.send_registration_confirmation.delay") as mock_delay:
            response = user_client.post(
                reverse("api:resend_registration_confirmation", kwargs={"registration_id": registration.pk})
            )

        assert response.status_code == 409
        mock_delay.assert_not_called()

    def test_resend_for_someone_elses(self, other_user_client: Client, registration: Registration) -> None:
        response = other_user_client.post(
            reverse("api:resend_registration_confirmation", kwargs={"registration_id": registration.pk})
        )

        assert response.status_code == 404


def test_register_then_cancel_round_trip(user_client: Client, event: Event) -> None:
    response = user_client.post(reverse("api:register", kwargs={"event_id": event.pk}))
    registration_id = response.json()["registration"]["id"]

    cancel = user_client.post(reverse("api:cancel_my_registration", kwargs={"registration_id": registration_id}))

    assert cancel.status_code == 200
    event.refresh_from_db()
    assert event.registered_count == 0
    assert Registration.objects.get(pk=registration_id).status == Registration.RegistrationStatus.CANCELED
