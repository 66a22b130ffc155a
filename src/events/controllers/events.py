import typing as t
from uuid import UUID

from django.db.models import QuerySet
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_extra.searching import Searching, searching
from ninja_jwt.authentication import JWTAuth

from common.authentication import OptionalAuth
from common.controllers import UserAwareController
from common.throttling import RegistrationThrottle
from events import filters, models, schema
from events.service.registration_manager import (
    RegistrationEligibility,
    RegistrationManager,
    check_registration_eligibility,
    retry_on_conflict,
)


@api_controller("/events", auth=OptionalAuth(), tags=["Events"])
class EventController(UserAwareController):
    def get_queryset(self) -> QuerySet[models.Event]:
        """Events reachable by id: anything past the draft stage, listed or not."""
        return models.Event.objects.exclude(status=models.Event.EventStatus.DRAFT)

    def get_one(self, event_id: UUID) -> models.Event:
        """Wrapper helper."""
        return t.cast(models.Event, self.get_object_or_exception(self.get_queryset(), pk=event_id))

    @route.get("/", url_name="list_events", response=PaginatedResponseSchema[schema.EventInListSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    @searching(Searching, search_fields=["name", "description", "location", "category"])
    def list_events(
        self,
        params: filters.EventFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[models.Event]:
        """Browse public events.

        By default only events that have not started are listed; set upcoming_only=false to include
        running and past events. Supports filtering by category and status, and text search.
        """
        return params.filter(models.Event.objects.public())

    @route.get("/{event_id}", url_name="get_event", response=schema.EventDetailSchema)
    def get_event(self, event_id: UUID) -> models.Event:
        """Retrieve an event with its live seat availability."""
        return self.get_one(event_id)

    @route.get(
        "/{event_id}/eligibility",
        url_name="registration_eligibility",
        response=RegistrationEligibility,
        auth=JWTAuth(),
    )
    def get_registration_eligibility(self, event_id: UUID) -> RegistrationEligibility:
        """Dry-run the registration checks for the current user.

        Reports whether a registration would go through right now and, if so, the price the
        user would pay. Nothing is reserved; the answer can change before the actual request.
        """
        event = self.get_one(event_id)
        return check_registration_eligibility(event, self.user().age)

    @route.post(
        "/{event_id}/register",
        url_name="register",
        response={
            200: schema.RegisterResponseSchema,
            201: schema.RegisterResponseSchema,
            400: RegistrationEligibility,
            404: schema.RegistrationErrorSchema,
            409: schema.RegistrationErrorSchema,
        },
        auth=JWTAuth(),
        throttle=RegistrationThrottle(),
    )
    def register(self, event_id: UUID) -> tuple[int, schema.RegisterResponseSchema]:
        """Reserve a seat at an event.

        Runs the age check, then the capacity checks, against the current state of the event.
        Returns 201 with the new registration, or 200 with the existing one if the user already
        holds a seat. On refusal returns 400 with the reason (too young/old, full, not open, ...).
        The registration starts as pending when the event requires approval.
        """
        manager = RegistrationManager(self.user())
        outcome = retry_on_conflict(lambda: manager.register(event_id))
        return (201 if outcome.created else 200), schema.RegisterResponseSchema(
            registration=schema.RegistrationSchema.from_orm(outcome.registration),
            already_registered=not outcome.created,
        )
