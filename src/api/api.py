from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI
from ninja_jwt.controller import NinjaJWTDefaultController

from accounts.controllers.account import AccountController
from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers.events import EventController
from events.controllers.registration_admin import RegistrationAdminController
from events.controllers.registrations import RegistrationController
from events.exceptions import RegistrationLifecycleError
from events.service.registration_manager import RegistrationIneligibleError

from .exception_handlers import (
    handle_django_validation_error,
    handle_general_exception,
    handle_registration_ineligible_error,
    handle_registration_lifecycle_error,
)

api = NinjaExtraAPI(
    title="Ticketing Backend API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"Ticketing API {settings.VERSION}",
    app_name=f"ticketing-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse}, url_name="version")
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk}, url_name="healthcheck")
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, ResponseOk()


api.register_controllers(
    # Auth/Account controllers
    NinjaJWTDefaultController,
    AccountController,
    # Event controllers
    EventController,
    RegistrationController,
    RegistrationAdminController,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    RegistrationLifecycleError: handle_registration_lifecycle_error,
    RegistrationIneligibleError: handle_registration_ineligible_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
