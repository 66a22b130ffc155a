"""Exception handlers for the API."""

import traceback
import typing as t
from copy import deepcopy

import orjson
import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import RegistrationLifecycleError
from events.service.registration_manager import RegistrationIneligibleError

logger = structlog.get_logger(__name__)


SENSITIVE_KEYS = {"authorization", "cookie", "password", "code", "ticket_code", "refresh", "access"}


def obfuscate(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Mask credentials and ticket codes in payloads and headers."""
    new_data = deepcopy(data)
    for key in data.keys():
        if key.lower() in SENSITIVE_KEYS:
            new_data[key] = "********"
    return new_data


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    json_payload = None
    if request.method in ("POST", "PUT", "PATCH") and request.headers.get("Content-Type") == "application/json":
        try:
            payload = orjson.loads(request.body)
        except orjson.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            json_payload = obfuscate(payload)
    logger.exception(
        "internal_server_error",
        method=request.method,
        path=request.path,
        query=obfuscate(request.GET.dict()),
        json_payload=json_payload,
        user=str(request.user) if getattr(request, "user", None) else None,
    )
    data = {"detail": "Internal Server Error."}
    is_staff = getattr(request, "user", None) and request.user.is_staff
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    logger.warning("validation_error", path=request.path)
    if hasattr(exc, "error_dict"):
        error_dict = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        error_dict = {"__all__": list(exc.messages)}  # type: ignore[union-attr]
    return Response(status=400, data={"errors": error_dict})


def handle_registration_lifecycle_error(
    request: HttpRequest, exc: RegistrationLifecycleError | t.Type[RegistrationLifecycleError]
) -> Response:
    """Handle a refusal from the registration, cancellation or check-in workflows."""
    assert isinstance(exc, RegistrationLifecycleError)
    return Response(
        status=exc.status_code,
        data={
            "detail": str(exc),
            "kind": exc.kind,
            "reason": exc.reason.code if exc.reason else None,
            "retryable": exc.retryable,
        },
    )


def handle_registration_ineligible_error(
    request: HttpRequest, exc: RegistrationIneligibleError | t.Type[RegistrationIneligibleError]
) -> Response:
    """Handle an age or capacity refusal."""
    assert isinstance(exc, RegistrationIneligibleError)
    return Response(status=400, data=exc.eligibility.model_dump(mode="json"))
