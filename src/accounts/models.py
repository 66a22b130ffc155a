import re
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.validators import MaxValueValidator
from django.db import models


class TicketingUserQueryset(models.QuerySet["TicketingUser"]):
    """Queryset for TicketingUser."""


class TicketingUserManager(UserManager["TicketingUser"]):
    def get_queryset(self) -> TicketingUserQueryset:
        """Get queryset for TicketingUser."""
        return TicketingUserQueryset(self.model)


class TicketingUser(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    preferred_name = models.CharField(db_index=True, max_length=255, blank=True, help_text="Preferred name")
    age = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MaxValueValidator(150)],
        help_text="Age in years. Used for age restrictions and age-based pricing.",
    )

    objects = TicketingUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]

    @property
    def display_name(self) -> str:
        """Display name."""
        return self.get_display_name()

    def get_display_name(self) -> str:
        """Returns the user's preferred name, or their full name as a fallback."""
        return (
            self.preferred_name or self.get_full_name() or re.sub(r"(\W|_)+", " ", self.username.split("@")[0]).title()
        )
