"""Check-in: turns a scanned ticket into a one-time attendance record."""

from dataclasses import dataclass
from datetime import datetime

import structlog
from django.conf import settings
from django.db import OperationalError, transaction
from django.utils import timezone

from accounts.models import TicketingUser
from events.enums import Reason
from events.exceptions import (
    AlreadyAttendedError,
    AlreadyCanceledError,
    CheckInNotOpenError,
    InvalidTicketCodeError,
    TransactionConflictError,
)
from events.models import Event, Registration

from .ticket_codes import resolve_scanned_code

logger = structlog.get_logger(__name__)


def assert_check_in_window(event: Event, now: datetime) -> None:
    """Refuse scans before the door opens or after the event ends."""
    if now < event.check_in_opens_at():
        raise CheckInNotOpenError(reason=Reason.NOT_YET_OPEN)
    if now > event.end_date:
        raise CheckInNotOpenError(reason=Reason.EVENT_OVER)


def check_in(scanned_code: str, checked_in_by: TicketingUser | None = None, *, now: datetime | None = None) -> Registration:
    """Check in the registration a scanned code points to.

    Only the Registration row is locked. Check-in never changes the seat counter,
    so it never waits on the Event row.

    Raises:
        InvalidTicketCodeError, AlreadyCanceledError, AlreadyAttendedError,
        CheckInNotOpenError, TransactionConflictError
    """
    now = now or timezone.now()
    ticket_code = resolve_scanned_code(scanned_code)
    try:
        registration = _check_in(ticket_code, checked_in_by, now)
    except OperationalError as e:
        logger.warning("check_in_transaction_conflict", error=str(e))
        raise TransactionConflictError() from e
    logger.info(
        "registration_checked_in",
        registration_id=str(registration.pk),
        event_id=str(registration.event_id),
        checked_in_by=str(checked_in_by.pk) if checked_in_by else None,
    )
    return registration


@transaction.atomic
def _check_in(ticket_code: str, checked_in_by: TicketingUser | None, now: datetime) -> Registration:
    registration = (
        Registration.objects.select_for_update(of=("self",))
        .select_related("event", "user")
        .filter(ticket_code=ticket_code)
        .first()
    )
    if registration is None:
        raise InvalidTicketCodeError()
    if registration.status == Registration.RegistrationStatus.CANCELED:
        raise AlreadyCanceledError()
    if registration.status == Registration.RegistrationStatus.ATTENDED:
        raise AlreadyAttendedError()
    if settings.CHECK_IN_WINDOW_ENFORCED:
        assert_check_in_window(registration.event, now)

    registration.status = Registration.RegistrationStatus.ATTENDED
    registration.attended_at = now
    registration.checked_in_by = checked_in_by
    registration.save(update_fields=["status", "attended_at", "checked_in_by", "updated_at"])
    return registration


@dataclass(frozen=True)
class TicketVerification:
    registration: Registration
    admissible: bool
    reason: str | None = None


def verify_ticket(scanned_code: str, *, now: datetime | None = None) -> TicketVerification:
    """Look up a scanned code without changing anything.

    Tells the door staff who the ticket belongs to and whether a check-in would go through.

    Raises:
        InvalidTicketCodeError
    """
    now = now or timezone.now()
    ticket_code = resolve_scanned_code(scanned_code)
    registration = Registration.objects.full().filter(ticket_code=ticket_code).first()
    if registration is None:
        raise InvalidTicketCodeError()
    if registration.status == Registration.RegistrationStatus.CANCELED:
        return TicketVerification(registration, admissible=False, reason=AlreadyCanceledError.kind)
    if registration.status == Registration.RegistrationStatus.ATTENDED:
        return TicketVerification(registration, admissible=False, reason=AlreadyAttendedError.kind)
    if settings.CHECK_IN_WINDOW_ENFORCED:
        try:
            assert_check_in_window(registration.event, now)
        except CheckInNotOpenError as e:
            return TicketVerification(registration, admissible=False, reason=e.reason.code if e.reason else None)
    return TicketVerification(registration, admissible=True)
