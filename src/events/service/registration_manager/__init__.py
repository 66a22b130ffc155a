"""Registration eligibility and seat management package.

This package provides the gates that decide whether a registration may proceed
and the manager that reserves and releases seats under a row lock.
"""

from .manager import RegistrationManager, RegistrationOutcome, retry_on_conflict
from .service import check_registration_eligibility
from .types import RegistrationEligibility, RegistrationIneligibleError

__all__ = [
    "RegistrationEligibility",
    "RegistrationIneligibleError",
    "RegistrationManager",
    "RegistrationOutcome",
    "check_registration_eligibility",
    "retry_on_conflict",
]
