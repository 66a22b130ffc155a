"""Dispatches registration notifications.

Notifications are side effects of a workflow that has already committed. A failure
here is logged and swallowed; it never reaches the caller.
"""

from uuid import UUID

import structlog

from accounts.models import TicketingUser
from events.exceptions import AlreadyAttendedError, AlreadyCanceledError, RegistrationNotFoundError
from events.models import Registration
from events.tasks import send_registration_confirmation

logger = structlog.get_logger(__name__)


def dispatch_registration_confirmation(registration_id: UUID) -> None:
    """Queue the confirmation e-mail for a registration.

    Meant to run from ``transaction.on_commit``.
    """
    try:
        send_registration_confirmation.delay(str(registration_id))
    except Exception:
        logger.exception("registration_confirmation_dispatch_failed", registration_id=str(registration_id))


def resend_confirmation(user: TicketingUser, registration_id: UUID) -> Registration:
    """Send the confirmation again for one of the user's seat-holding, not yet attended registrations.

    Raises:
        RegistrationNotFoundError, AlreadyCanceledError, AlreadyAttendedError
    """
    registration = Registration.objects.filter(pk=registration_id, user=user).first()
    if registration is None:
        raise RegistrationNotFoundError()
    if registration.status == Registration.RegistrationStatus.CANCELED:
        raise AlreadyCanceledError()
    if registration.status == Registration.RegistrationStatus.ATTENDED:
        raise AlreadyAttendedError()
    dispatch_registration_confirmation(registration.pk)
    logger.info("registration_confirmation_resent", registration_id=str(registration.pk))
    return registration
