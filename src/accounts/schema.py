"""Schema for accounts module."""

import typing as t

from ninja import ModelSchema, Schema
from pydantic import UUID4, Field

from common.schema import StrippedString

from .models import TicketingUser


class TicketingUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = TicketingUser
        fields = ["username", "email", "first_name", "last_name", "preferred_name", "age", "is_staff"]


class MinimalTicketingUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = TicketingUser
        fields = ["email"]


class ProfileUpdateSchema(Schema):
    first_name: StrippedString = ""
    last_name: StrippedString = ""
    preferred_name: StrippedString = ""
    age: t.Annotated[int, Field(ge=0, le=150)] | None = None
