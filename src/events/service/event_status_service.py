"""Keeps the stored Event.status roughly in line with the clock.

Advisory only: registration, cancellation and check-in decide from the stored dates,
never from this column.
"""

from datetime import datetime

import structlog
from django.utils import timezone

from events.models import Event

logger = structlog.get_logger(__name__)


def derive_event_statuses(now: datetime | None = None) -> int:
    """Write the clock-derived status of every event that may be lagging.

    The update is conditional on the status read, so an event cancelled by hand
    in the meantime is left alone.

    Returns:
        The number of events whose status changed.
    """
    now = now or timezone.now()
    changed = 0
    for event in Event.objects.needing_status_sweep(now).only("id", "status", "start_date", "end_date").iterator():
        derived = event.derive_status(now)
        if derived == event.status:
            continue
        updated = Event.objects.filter(pk=event.pk, status=event.status).update(status=derived, updated_at=now)
        if updated:
            changed += 1
            logger.info("event_status_derived", event_id=str(event.pk), old_status=event.status, new_status=derived)
    return changed
