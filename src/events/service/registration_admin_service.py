"""Staff-side registration actions: approval and reporting."""

from datetime import datetime, timedelta
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from accounts.models import TicketingUser
from events.exceptions import AlreadyAttendedError, AlreadyCanceledError, RegistrationNotFoundError
from events.models import Registration

logger = structlog.get_logger(__name__)

RECENT_WINDOW = timedelta(days=7)


@transaction.atomic
def approve_registration(registration_id: UUID, approved_by: TicketingUser, *, now: datetime | None = None) -> Registration:
    """Move a pending registration to confirmed.

    The seat was already counted when the registration was created, so the counter
    does not move. Approving a confirmed registration is a no-op.

    Raises:
        RegistrationNotFoundError, AlreadyCanceledError, AlreadyAttendedError
    """
    registration = Registration.objects.select_for_update().filter(pk=registration_id).first()
    if registration is None:
        raise RegistrationNotFoundError()
    if registration.status == Registration.RegistrationStatus.CANCELED:
        raise AlreadyCanceledError()
    if registration.status == Registration.RegistrationStatus.ATTENDED:
        raise AlreadyAttendedError()
    if registration.status == Registration.RegistrationStatus.CONFIRMED:
        return registration

    registration.status = Registration.RegistrationStatus.CONFIRMED
    registration.approved_at = now or timezone.now()
    registration.save(update_fields=["status", "approved_at", "updated_at"])
    logger.info("registration_approved", registration_id=str(registration.pk), approved_by=str(approved_by.pk))
    return registration


def registration_stats(event_id: UUID | None = None, *, now: datetime | None = None) -> dict[str, int]:
    """Count registrations by status, plus how many were created in the last seven days."""
    now = now or timezone.now()
    qs = Registration.objects.all()
    if event_id is not None:
        qs = qs.filter(event_id=event_id)
    status = Registration.RegistrationStatus
    return qs.aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status=status.PENDING)),
        confirmed=Count("id", filter=Q(status=status.CONFIRMED)),
        attended=Count("id", filter=Q(status=status.ATTENDED)),
        canceled=Count("id", filter=Q(status=status.CANCELED)),
        recent=Count("id", filter=Q(created_at__gte=now - RECENT_WINDOW)),
    )
