"""Types and exceptions for the registration eligibility system."""

import uuid
from decimal import Decimal

from pydantic import BaseModel

from events.enums import ErrorKind
from events.exceptions import RegistrationLifecycleError


class RegistrationEligibility(BaseModel):
    """Result of the age and capacity gates for a registrant on an event."""

    allowed: bool
    event_id: uuid.UUID
    kind: ErrorKind | None = None
    reason: str | None = None  # machine-readable sub-kind, e.g. "full"
    message: str | None = None  # translated, for display
    price: Decimal | None = None
    available_seats: int | None = None


class RegistrationIneligibleError(RegistrationLifecycleError):
    """Raised when the age gate or the capacity gate refuses a registration."""

    def __init__(self, message: str, eligibility: RegistrationEligibility) -> None:
        """Initialize the exception with eligibility details."""
        self.kind = eligibility.kind or ErrorKind.CAPACITY_UNAVAILABLE
        super().__init__(message)
        self.eligibility = eligibility
