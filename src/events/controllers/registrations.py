import typing as t
from uuid import UUID

from django.db.models import QuerySet
from django.utils.translation import gettext as _
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_jwt.authentication import JWTAuth

from common.controllers import UserAwareController
from common.schema import ResponseMessage
from common.throttling import WriteThrottle
from events import filters, models, schema
from events.exceptions import AlreadyAttendedError, AlreadyCanceledError
from events.service import notification_service, ticket_codes
from events.service.registration_manager import RegistrationManager, retry_on_conflict


@api_controller("/registrations", auth=JWTAuth(), tags=["Registrations"])
class RegistrationController(UserAwareController):
    def get_queryset(self) -> QuerySet[models.Registration]:
        """The current user's registrations."""
        return models.Registration.objects.select_related("event").filter(user=self.user())

    def get_one(self, registration_id: UUID) -> models.Registration:
        """Wrapper helper."""
        return t.cast(models.Registration, self.get_object_or_exception(self.get_queryset(), pk=registration_id))

    @route.get("/", url_name="list_my_registrations", response=PaginatedResponseSchema[schema.RegistrationSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_registrations(
        self,
        params: filters.MyRegistrationFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[models.Registration]:
        """List your registrations, newest first.

        Registrations for events that have ended are hidden unless include_past=true.
        """
        return params.filter(self.get_queryset())

    @route.get("/{registration_id}", url_name="get_my_registration", response=schema.RegistrationSchema)
    def get_registration(self, registration_id: UUID) -> models.Registration:
        """Retrieve one of your registrations."""
        return self.get_one(registration_id)

    @route.post(
        "/{registration_id}/cancel",
        url_name="cancel_my_registration",
        response={200: schema.RegistrationSchema, **schema.ERROR_RESPONSES},
        throttle=WriteThrottle(),
    )
    def cancel_registration(self, registration_id: UUID) -> models.Registration:
        """Cancel your registration and give the seat back.

        Not possible once the event has started, or once you have been checked in.
        """
        manager = RegistrationManager(self.user())
        return retry_on_conflict(lambda: manager.cancel(registration_id))

    @route.get(
        "/{registration_id}/qr-code",
        url_name="my_registration_qr_code",
        response={200: schema.TicketQRCodeSchema, 409: schema.RegistrationErrorSchema},
    )
    def get_qr_code(self, registration_id: UUID) -> schema.TicketQRCodeSchema:
        """Get the scannable ticket for a registration.

        ``payload`` is the signed string the QR image encodes; ``qr_code`` is a PNG data URL.
        """
        registration = self.get_one(registration_id)
        if registration.status == models.Registration.RegistrationStatus.CANCELED:
            raise AlreadyCanceledError()
        if registration.status == models.Registration.RegistrationStatus.ATTENDED:
            raise AlreadyAttendedError()
        return schema.TicketQRCodeSchema(
            payload=ticket_codes.scan_payload(registration),
            qr_code=ticket_codes.qr_code_data_url(registration),
        )

    @route.post(
        "/{registration_id}/resend-confirmation",
        url_name="resend_registration_confirmation",
        response={200: ResponseMessage, 404: schema.RegistrationErrorSchema, 409: schema.RegistrationErrorSchema},
        throttle=WriteThrottle(),
    )
    def resend_confirmation(self, registration_id: UUID) -> ResponseMessage:
        """Send the confirmation e-mail with the QR ticket again."""
        notification_service.resend_confirmation(self.user(), registration_id)
        return ResponseMessage(message=str(_("Your confirmation has been sent again.")))
