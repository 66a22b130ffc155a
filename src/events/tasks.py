"""Celery tasks for registrations and events.

This module contains asynchronous tasks for:
- Registration confirmation e-mails
- The periodic event status sweep
"""

import structlog
from celery import shared_task
from django.template.loader import render_to_string
from django.utils.translation import gettext as _

from common.tasks import send_email

from .models import Registration
from .service import event_status_service, ticket_codes

logger = structlog.get_logger(__name__)


@shared_task(name="events.send_registration_confirmation")
def send_registration_confirmation(registration_id: str) -> None:
    """Send the confirmation e-mail with the QR ticket attached."""
    registration = Registration.objects.full().filter(pk=registration_id).first()
    if registration is None:
        logger.warning("registration_confirmation_missing_registration", registration_id=registration_id)
        return
    if not registration.user.email:
        logger.info("registration_confirmation_no_email", registration_id=registration_id)
        return

    event = registration.event
    subject = _("Your registration for %(event_name)s") % {"event_name": event.name}
    body = render_to_string(
        "events/emails/registration_confirmation_body.txt",
        {
            "user": registration.user,
            "event": event,
            "registration": registration,
            "scan_payload": ticket_codes.scan_payload(registration),
        },
    )
    send_email(
        to=registration.user.email,
        subject=subject,
        body=body,
        attachments=[("ticket.png", ticket_codes.qr_code_png(registration), "image/png")],
    )
    logger.info("registration_confirmation_sent", registration_id=registration_id)


@shared_task(name="events.derive_event_statuses")
def derive_event_statuses() -> int:
    """Periodic sweep that keeps Event.status in line with the clock."""
    changed = event_status_service.derive_event_statuses()
    logger.info("event_status_sweep_finished", changed=changed)
    return changed
