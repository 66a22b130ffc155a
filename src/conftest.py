"""Project-wide fixtures."""

import typing as t
from datetime import datetime, timedelta

import faker
import pytest
from django.core.cache import cache
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken

from accounts.models import TicketingUser
from ticketing.celery import app as celery_app


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> t.Iterator[None]:
    """Enable Celery eager mode for tests so tasks execute synchronously.

    Celery reads its configuration once, so the app config is patched directly as well.
    """
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True
    previous = celery_app.conf.task_always_eager, celery_app.conf.task_eager_propagates
    celery_app.conf.task_always_eager = True
    celery_app.conf.task_eager_propagates = True
    yield
    celery_app.conf.task_always_eager, celery_app.conf.task_eager_propagates = previous


@pytest.fixture(autouse=True)
def reset_throttle_history() -> None:
    """Throttle history lives in the cache; start every test with a clean slate."""
    cache.clear()


class TicketingUserFactory:
    """Creates users with fake but unique identities."""

    def __init__(self) -> None:
        self.faker = faker.Faker()

    def __call__(self, **kwargs: t.Any) -> TicketingUser:
        username = kwargs.pop("username", None) or f"{self.faker.user_name()}_{self.faker.unique.random_int()}"
        defaults: dict[str, t.Any] = {
            "email": f"{username}@example.com",
            "first_name": self.faker.first_name(),
            "last_name": self.faker.last_name(),
            "age": 30,
            "password": "strong-password-123",
        }
        defaults.update(kwargs)
        return TicketingUser.objects.create_user(username=username, **defaults)


@pytest.fixture
def user_factory() -> TicketingUserFactory:
    return TicketingUserFactory()


@pytest.fixture
def user(user_factory: TicketingUserFactory) -> TicketingUser:
    return user_factory(username="attendee", age=30)


@pytest.fixture
def other_user(user_factory: TicketingUserFactory) -> TicketingUser:
    return user_factory(username="other_attendee", age=30)


@pytest.fixture
def staff_user(user_factory: TicketingUserFactory) -> TicketingUser:
    return user_factory(username="door_staff", is_staff=True)


def _client_for(user: TicketingUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")  # type: ignore[attr-defined]


@pytest.fixture
def user_client(user: TicketingUser) -> Client:
    return _client_for(user)


@pytest.fixture
def other_user_client(other_user: TicketingUser) -> Client:
    return _client_for(other_user)


@pytest.fixture
def staff_client(staff_user: TicketingUser) -> Client:
    return _client_for(staff_user)


@pytest.fixture
def now() -> datetime:
    return timezone.now()


@pytest.fixture
def next_week(now: datetime) -> datetime:
    return now + timedelta(days=7)
