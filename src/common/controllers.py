import typing as t

from ninja_extra import ControllerBase

from accounts.models import TicketingUser


class UserAwareController(ControllerBase):
    def user(self) -> TicketingUser:
        """Get the user for this request."""
        return t.cast(TicketingUser, self.context.request.user)  # type: ignore[union-attr]
