"""Enums for the registration lifecycle."""

from enum import StrEnum

from django.utils.translation import gettext_noop


class ErrorKind(StrEnum):
    """What went wrong, as far as a caller's control flow is concerned."""

    NOT_FOUND = "not_found"
    AGE_INELIGIBLE = "age_ineligible"
    CAPACITY_UNAVAILABLE = "capacity_unavailable"
    ALREADY_CANCELED = "already_canceled"
    ALREADY_ATTENDED = "already_attended"
    EVENT_STARTED = "event_started"
    INVALID_CODE = "invalid_code"
    CHECK_IN_NOT_OPEN = "check_in_not_open"
    TRANSACTION_CONFLICT = "transaction_conflict"


class Reason(StrEnum):
    """The specific sub-kind of a refusal.

    Note: Strings are marked with gettext_noop() for translation extraction.
    The actual translation happens where the message is rendered, via _(Reason.XXX).
    """

    # age
    TOO_YOUNG = gettext_noop("You are below the minimum age for this event.")
    TOO_OLD = gettext_noop("You are above the maximum age for this event.")
    AGE_UNKNOWN = gettext_noop("Your age is required to register for this event.")

    # capacity
    NOT_PUBLISHED = gettext_noop("This event is not open for registration.")
    FULL = gettext_noop("This event is full.")
    EVENT_ALREADY_FINISHED = gettext_noop("This event has already finished.")
    REGISTRATION_NOT_STARTED = gettext_noop("Registration has not opened yet.")
    REGISTRATION_WINDOW_CLOSED = gettext_noop("Registration is closed.")

    # check-in
    NOT_YET_OPEN = gettext_noop("Check-in is not open yet.")
    EVENT_OVER = gettext_noop("Check-in has closed, the event is over.")

    @property
    def code(self) -> str:
        """Stable machine-readable name, e.g. ``too_young``."""
        return self.name.lower()
