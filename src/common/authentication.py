import typing as t

import structlog
from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from django.http import HttpRequest
from ninja_jwt.authentication import JWTAuth

logger = structlog.get_logger(__name__)


class OptionalAuth(JWTAuth):
    """Optional JWT authentication.

    Allows endpoints to work with or without authentication:
    - If JWT token present: authenticates the user
    - If no JWT token: sets request.user to AnonymousUser and continues

    Usage:
        @api_controller("/events", auth=OptionalAuth())
        class EventController:
            def list_events(self, request):
                user = request.user  # Could be TicketingUser or AnonymousUser
    """

    def __call__(self, request: HttpRequest) -> t.Any | None:
        """Overrides JWTAuth __call__ to provide optional auth."""
        auth_value = request.headers.get(self.header)
        if not auth_value:
            request.user = AnonymousUser()
            return request.user
        parts = auth_value.split(" ")

        if parts[0].lower() != self.openapi_scheme:
            if settings.DEBUG:
                logger.error("unexpected_auth_scheme", scheme=parts[0])
            return None
        token = " ".join(parts[1:])
        return self.authenticate(request, token)
