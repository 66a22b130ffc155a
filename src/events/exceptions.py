from django.utils.translation import gettext as _

from events.enums import ErrorKind, Reason


class RegistrationLifecycleError(Exception):
    """Base for every refusal raised by the registration, cancellation and check-in workflows.

    Refusals are raised before any write, so the surrounding transaction rolls back clean.
    """

    kind: ErrorKind
    status_code: int = 400
    default_message: str = "The request could not be completed."
    retryable: bool = False

    def __init__(self, message: str | None = None, *, reason: Reason | None = None) -> None:
        """Initialize with an optional sub-kind; the message defaults to the reason's text."""
        self.reason = reason
        if message is None:
            message = _(reason) if reason is not None else _(self.default_message)
        super().__init__(message)
        self.message = message


class EventNotFoundError(RegistrationLifecycleError):
    """Raised when the event does not exist."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Event not found."


class RegistrationNotFoundError(RegistrationLifecycleError):
    """Raised when the registration does not exist or the caller does not own it."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Registration not found."


class AlreadyCanceledError(RegistrationLifecycleError):
    """Raised when acting on a canceled registration."""

    kind = ErrorKind.ALREADY_CANCELED
    status_code = 409
    default_message = "This registration has been canceled."


class AlreadyAttendedError(RegistrationLifecycleError):
    """Raised when acting on a registration that has already been checked in."""

    kind = ErrorKind.ALREADY_ATTENDED
    status_code = 409
    default_message = "This registration has already been checked in."


class EventStartedError(RegistrationLifecycleError):
    """Raised when canceling after the event has started."""

    kind = ErrorKind.EVENT_STARTED
    default_message = "The event has already started; the registration can no longer be canceled."


class InvalidTicketCodeError(RegistrationLifecycleError):
    """Raised when a scanned code is forged, malformed or unknown."""

    kind = ErrorKind.INVALID_CODE
    status_code = 404
    default_message = "Invalid ticket code."


class CheckInNotOpenError(RegistrationLifecycleError):
    """Raised when scanning outside the event's check-in window."""

    kind = ErrorKind.CHECK_IN_NOT_OPEN


class TransactionConflictError(RegistrationLifecycleError):
    """Raised on lock timeouts, serialization failures and uniqueness races.

    The only refusal that is safe to retry automatically.
    """

    kind = ErrorKind.TRANSACTION_CONFLICT
    status_code = 409
    default_message = "The request conflicted with a concurrent update. Please try again."
    retryable = True
