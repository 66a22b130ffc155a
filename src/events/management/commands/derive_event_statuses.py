import typing as t

import structlog
from django.core.management.base import BaseCommand

from events.service import event_status_service

logger = structlog.get_logger(__name__)


class Command(BaseCommand):
    """Bring every event's stored status in line with the clock.

    The same sweep runs periodically through Celery beat; this command is for
    one-off runs and for deployments without a beat scheduler.
    """

    help = "Derive ongoing/finished event statuses from start and end dates."

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        """Run the sweep once."""
        changed = event_status_service.derive_event_statuses()
        logger.info("event_status_sweep_finished", changed=changed)
        self.stdout.write(self.style.SUCCESS(f"Updated {changed} event(s)."))
