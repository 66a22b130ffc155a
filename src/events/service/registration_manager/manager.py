"""RegistrationManager: the seat-reserving and seat-releasing workflows."""

import typing as t
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from uuid import UUID

import structlog
from django.conf import settings
from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import TicketingUser
from events.exceptions import (
    AlreadyAttendedError,
    AlreadyCanceledError,
    EventNotFoundError,
    EventStartedError,
    RegistrationNotFoundError,
    TransactionConflictError,
)
from events.models import Event, Registration
from events.service import notification_service

from .service import check_registration_eligibility
from .types import RegistrationIneligibleError

logger = structlog.get_logger(__name__)

T = t.TypeVar("T")


@dataclass(frozen=True)
class RegistrationOutcome:
    registration: Registration
    created: bool


class RegistrationManager:
    """The Registration Manager Class.

    Reserves and releases seats. Every decision that touches ``Event.registered_count``
    is made on an Event row read with ``select_for_update`` in the same transaction
    that writes it, so two callers racing for the last seat are serialized by the database.
    """

    def __init__(self, user: TicketingUser, now: datetime | None = None) -> None:
        """Initialize the RegistrationManager.

        Args:
            user: The acting user.
            now: The clock reading every check in this unit of work uses. Defaults to the current time.
        """
        self.user = user
        self.now = now or timezone.now()

    def register(self, event_id: UUID, age: int | None = None) -> RegistrationOutcome:
        """Register the user for an event.

        Order of checks, all against the locked Event row:
        age band, then the capacity gates, then an existing active registration
        (returned as-is, not an error), then price, insert and counter increment.

        Args:
            event_id: The event.
            age: The registrant's age. Defaults to the user's stored age.

        Returns:
            RegistrationOutcome with ``created=False`` when the user already holds a seat.

        Raises:
            EventNotFoundError, RegistrationIneligibleError, TransactionConflictError
        """
        age = self.user.age if age is None else age
        try:
            return self._register(event_id, age)
        except OperationalError as e:
            logger.warning("registration_transaction_conflict", event_id=str(event_id), error=str(e))
            raise TransactionConflictError() from e
        except IntegrityError as e:
            # Lost a uniqueness race on the active (event, user) pair: the winner's row is the answer.
            existing = Registration.objects.holding_seat().filter(event_id=event_id, user=self.user).first()
            if existing is not None:
                logger.info("registration_already_exists", registration_id=str(existing.pk), event_id=str(event_id))
                return RegistrationOutcome(registration=existing, created=False)
            logger.warning("registration_integrity_conflict", event_id=str(event_id), error=str(e))
            raise TransactionConflictError() from e

    @transaction.atomic
    def _register(self, event_id: UUID, age: int | None) -> RegistrationOutcome:
        event = Event.objects.select_for_update().filter(pk=event_id).first()
        if event is None:
            raise EventNotFoundError()

        eligibility = check_registration_eligibility(event, age, self.now)
        if not eligibility.allowed:
            logger.info(
                "registration_refused",
                event_id=str(event.pk),
                user_id=str(self.user.pk),
                kind=eligibility.kind,
                reason=eligibility.reason,
            )
            raise RegistrationIneligibleError(eligibility.message or "", eligibility=eligibility)

        existing = Registration.objects.holding_seat().filter(event=event, user=self.user).first()
        if existing is not None:
            logger.info("registration_already_exists", registration_id=str(existing.pk), event_id=str(event.pk))
            return RegistrationOutcome(registration=existing, created=False)

        registration = Registration.objects.create(
            event=event,
            user=self.user,
            status=(
                Registration.RegistrationStatus.PENDING
                if event.requires_approval
                else Registration.RegistrationStatus.CONFIRMED
            ),
            price=eligibility.price,
        )
        Event.objects.filter(pk=event.pk).update(registered_count=F("registered_count") + 1)

        transaction.on_commit(partial(notification_service.dispatch_registration_confirmation, registration.pk))
        logger.info(
            "registration_created",
            registration_id=str(registration.pk),
            event_id=str(event.pk),
            user_id=str(self.user.pk),
            status=registration.status,
            price=str(registration.price),
        )
        return RegistrationOutcome(registration=registration, created=True)

    def cancel(self, registration_id: UUID, as_admin: bool = False) -> Registration:
        """Cancel a registration and release its seat.

        The self-service path only sees the user's own registrations; ``as_admin`` skips the ownership check.
        The timing and status checks apply to both.

        Raises:
            RegistrationNotFoundError, AlreadyCanceledError, AlreadyAttendedError,
            EventStartedError, TransactionConflictError
        """
        qs = Registration.objects.select_related("event")
        if not as_admin:
            qs = qs.filter(user=self.user)
        registration = qs.filter(pk=registration_id).first()
        if registration is None:
            raise RegistrationNotFoundError()
        self._assert_cancelable(registration)

        try:
            return self._cancel(registration)
        except OperationalError as e:
            logger.warning("cancellation_transaction_conflict", registration_id=str(registration_id), error=str(e))
            raise TransactionConflictError() from e

    @transaction.atomic
    def _cancel(self, registration: Registration) -> Registration:
        # Lock order: Event, then Registration. Registration writers all follow it.
        event = Event.objects.select_for_update().get(pk=registration.event_id)
        registration = Registration.objects.select_for_update().get(pk=registration.pk)
        registration.event = event
        self._assert_cancelable(registration)

        registration.status = Registration.RegistrationStatus.CANCELED
        registration.canceled_at = self.now
        registration.save(update_fields=["status", "canceled_at", "updated_at"])

        if event.registered_count > 0:
            Event.objects.filter(pk=event.pk).update(registered_count=F("registered_count") - 1)
        else:
            logger.error(
                "registered_count_underflow",
                event_id=str(event.pk),
                registration_id=str(registration.pk),
                capacity=event.capacity,
            )

        logger.info(
            "registration_canceled",
            registration_id=str(registration.pk),
            event_id=str(event.pk),
            canceled_by=str(self.user.pk),
        )
        return registration

    def _assert_cancelable(self, registration: Registration) -> None:
        if registration.status == Registration.RegistrationStatus.CANCELED:
            raise AlreadyCanceledError()
        if registration.status == Registration.RegistrationStatus.ATTENDED:
            raise AlreadyAttendedError()
        if registration.event.has_started(self.now):
            raise EventStartedError()


def retry_on_conflict(func: t.Callable[[], T], attempts: int | None = None) -> T:
    """Call ``func`` again after a TransactionConflictError, up to ``attempts`` times in total.

    Every other refusal propagates on the first try.
    """
    attempts = attempts or settings.REGISTRATION_CONFLICT_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except TransactionConflictError:
            if attempt == attempts:
                raise
            logger.info("retrying_after_transaction_conflict", attempt=attempt, max_attempts=attempts)
    raise AssertionError("unreachable")  # pragma: no cover
