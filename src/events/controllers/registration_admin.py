import typing as t
from uuid import UUID

from django.db.models import QuerySet
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_extra.permissions import IsAdminUser
from ninja_extra.searching import Searching, searching
from ninja_jwt.authentication import JWTAuth

from common.controllers import UserAwareController
from common.throttling import CheckInThrottle, UserDefaultThrottle, WriteThrottle
from events import filters, models, schema
from events.service import check_in_service, registration_admin_service
from events.service.registration_manager import RegistrationManager, retry_on_conflict


@api_controller(
    "/admin/registrations",
    auth=JWTAuth(),
    permissions=[IsAdminUser],
    tags=["Registration Admin"],
    throttle=WriteThrottle(),
)
class RegistrationAdminController(UserAwareController):
    """Staff endpoints: door scanning, approval and reporting."""

    def get_one(self, registration_id: UUID) -> models.Registration:
        """Wrapper helper."""
        return t.cast(
            models.Registration,
            self.get_object_or_exception(models.Registration.objects.full(), pk=registration_id),
        )

    @route.get(
        "/",
        url_name="admin_list_registrations",
        response=PaginatedResponseSchema[schema.AdminRegistrationSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    @searching(
        Searching,
        search_fields=["user__email", "user__username", "user__first_name", "user__last_name", "event__name"],
    )
    def list_registrations(
        self,
        params: filters.AdminRegistrationFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[models.Registration]:
        """List registrations with optional filters.

        Supports filtering by:
        - status: pending, confirmed, attended, canceled
        - event_id: a single event
        """
        return params.filter(models.Registration.objects.full())

    @route.get(
        "/stats",
        url_name="admin_registration_stats",
        response=schema.RegistrationStatsSchema,
        throttle=UserDefaultThrottle(),
    )
    def get_stats(self, event_id: UUID | None = None) -> dict[str, int]:
        """Registration totals by status, plus how many were created in the last 7 days."""
        return registration_admin_service.registration_stats(event_id)

    @route.post(
        "/verify",
        url_name="admin_verify_ticket",
        response={200: schema.TicketVerificationSchema, 404: schema.RegistrationErrorSchema},
        throttle=CheckInThrottle(),
    )
    def verify_ticket(self, payload: schema.ScanRequestSchema) -> schema.TicketVerificationSchema:
        """Look up a scanned ticket without checking it in.

        Shows who the ticket belongs to and whether a check-in would be accepted right now.
        """
        verification = check_in_service.verify_ticket(payload.code)
        return schema.TicketVerificationSchema(
            admissible=verification.admissible,
            reason=verification.reason,
            registration=schema.AdminRegistrationSchema.from_orm(verification.registration),
        )

    @route.post(
        "/check-in",
        url_name="admin_check_in",
        response={200: schema.AdminRegistrationSchema, **schema.ERROR_RESPONSES},
        throttle=CheckInThrottle(),
    )
    def check_in(self, payload: schema.ScanRequestSchema) -> models.Registration:
        """Check in the attendee a scanned ticket belongs to.

        Accepts the signed QR payload or a bare ticket code. A ticket can be checked in once;
        a second scan returns 409 already_attended.
        """
        registration = retry_on_conflict(lambda: check_in_service.check_in(payload.code, checked_in_by=self.user()))
        return self.get_one(registration.pk)

    @route.get(
        "/{registration_id}",
        url_name="admin_get_registration",
        response=schema.AdminRegistrationSchema,
        throttle=UserDefaultThrottle(),
    )
    def get_registration(self, registration_id: UUID) -> models.Registration:
        """Retrieve any registration."""
        return self.get_one(registration_id)

    @route.post(
        "/{registration_id}/approve",
        url_name="admin_approve_registration",
        response={200: schema.AdminRegistrationSchema, **schema.ERROR_RESPONSES},
    )
    def approve_registration(self, registration_id: UUID) -> models.Registration:
        """Approve a pending registration. Approving a confirmed one is a no-op."""
        registration = registration_admin_service.approve_registration(registration_id, approved_by=self.user())
        return self.get_one(registration.pk)

    @route.post(
        "/{registration_id}/cancel",
        url_name="admin_cancel_registration",
        response={200: schema.AdminRegistrationSchema, **schema.ERROR_RESPONSES},
    )
    def cancel_registration(self, registration_id: UUID) -> models.Registration:
        """Cancel any registration and give the seat back. Same timing rules as self-service."""
        manager = RegistrationManager(self.user())
        registration = retry_on_conflict(lambda: manager.cancel(registration_id, as_admin=True))
        return self.get_one(registration.pk)
