"""This module contains the controllers for the accounts app."""

import typing as t

from ninja_extra import ControllerBase, api_controller, route
from ninja_jwt.authentication import JWTAuth

from accounts.models import TicketingUser
from accounts.schema import ProfileUpdateSchema, TicketingUserSchema
from common.throttling import WriteThrottle


@api_controller("/account", tags=["Account"], auth=JWTAuth())
class AccountController(ControllerBase):
    def user(self) -> TicketingUser:
        """Get the user for this request."""
        return t.cast(TicketingUser, self.context.request.user)  # type: ignore[union-attr]

    @route.get("/me", response=TicketingUserSchema, url_name="me")
    def me(self) -> TicketingUser:
        """Retrieve the authenticated user's profile.

        The stored age is what registrations are priced and age-checked against.
        """
        return self.user()

    @route.put("/me", response=TicketingUserSchema, url_name="update_me", throttle=WriteThrottle())
    def update_profile(self, payload: ProfileUpdateSchema) -> TicketingUser:
        """Update the authenticated user's profile.

        Changing the age does not reprice existing registrations; their price is a snapshot.
        """
        user = self.user()
        for field, value in payload.model_dump().items():
            setattr(user, field, value)
        user.save(update_fields=[*payload.model_dump().keys()])
        return user
