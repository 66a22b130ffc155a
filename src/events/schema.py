from datetime import datetime
from uuid import UUID

from ninja import ModelSchema, Schema

from accounts.schema import MinimalTicketingUserSchema
from common.schema import ScannedCodeString
from events.enums import ErrorKind
from events.models import Event, Registration


class EventInListSchema(ModelSchema):
    available_seats: int
    is_full: bool

    class Meta:
        model = Event
        fields = [
            "id",
            "name",
            "location",
            "category",
            "status",
            "start_date",
            "end_date",
            "capacity",
            "base_price",
        ]


class EventDetailSchema(ModelSchema):
    available_seats: int
    is_full: bool
    is_registration_open: bool

    class Meta:
        model = Event
        fields = [
            "id",
            "name",
            "description",
            "location",
            "category",
            "status",
            "start_date",
            "end_date",
            "registration_start_date",
            "registration_end_date",
            "check_in_starts_at",
            "capacity",
            "registered_count",
            "requires_approval",
            "min_age",
            "max_age",
            "base_price",
            "youth_price",
            "senior_price",
        ]

    @staticmethod
    def resolve_is_registration_open(obj: Event) -> bool:
        return obj.is_registration_open()


class MinimalEventSchema(Schema):
    id: UUID
    name: str
    location: str
    start_date: datetime
    end_date: datetime


class RegistrationSchema(ModelSchema):
    event: MinimalEventSchema
    status: Registration.RegistrationStatus

    class Meta:
        model = Registration
        fields = ["id", "status", "price", "attended_at", "approved_at", "canceled_at", "created_at"]


class RegisterResponseSchema(Schema):
    """Outcome of a registration request.

    ``already_registered`` is true when the caller already held a seat and nothing was created.
    """

    registration: RegistrationSchema
    already_registered: bool


class TicketQRCodeSchema(Schema):
    payload: str
    qr_code: str


class AdminRegistrationSchema(ModelSchema):
    """Schema for registrations in the staff interface."""

    user: MinimalTicketingUserSchema
    event: MinimalEventSchema
    status: Registration.RegistrationStatus
    checked_in_by: MinimalTicketingUserSchema | None = None

    class Meta:
        model = Registration
        fields = ["id", "status", "price", "attended_at", "approved_at", "canceled_at", "created_at"]


class ScanRequestSchema(Schema):
    """What a door scanner read: a signed payload or a bare ticket code."""

    code: ScannedCodeString


class TicketVerificationSchema(Schema):
    admissible: bool
    reason: str | None = None
    registration: AdminRegistrationSchema


class RegistrationStatsSchema(Schema):
    total: int
    pending: int
    confirmed: int
    attended: int
    canceled: int
    recent: int


class RegistrationErrorSchema(Schema):
    """Body of every registration, cancellation and check-in refusal."""

    detail: str
    kind: ErrorKind | None = None
    reason: str | None = None
    retryable: bool = False


ERROR_RESPONSES = {
    400: RegistrationErrorSchema,
    404: RegistrationErrorSchema,
    409: RegistrationErrorSchema,
}
