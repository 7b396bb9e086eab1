"""
Uniform response envelope.

Every response body has the shape ``{"success": bool, "message": str,
"data": ...}``. Success payloads are built with ``envelope()``; failures
are rendered by the handlers registered through ``install_exception_handlers``.
"""
import logging
from typing import Any

from django.http import HttpRequest
from ninja import NinjaAPI
from ninja.errors import HttpError, ValidationError

from .errors import InternalError, ServiceError

logger = logging.getLogger(__name__)


def envelope(data: Any = None, message: str = "", success: bool = True) -> dict:
    body = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return body


def error_body(message: str, errors: Any = None) -> dict:
    body = envelope(message=message, success=False)
    if errors is not None:
        body["errors"] = errors
    return body


def install_exception_handlers(api: NinjaAPI) -> None:
    """Register envelope-rendering handlers for every failure path."""

    @api.exception_handler(ServiceError)
    def on_service_error(request: HttpRequest, exc: ServiceError):
        return api.create_response(request, error_body(exc.message), status=exc.status_code)

    @api.exception_handler(HttpError)
    def on_http_error(request: HttpRequest, exc: HttpError):
        return api.create_response(request, error_body(str(exc)), status=exc.status_code)

    @api.exception_handler(ValidationError)
    def on_validation_error(request: HttpRequest, exc: ValidationError):
        return api.create_response(
            request,
            error_body("Invalid request payload", errors=exc.errors),
            status=400,
        )

    @api.exception_handler(Exception)
    def on_unexpected_error(request: HttpRequest, exc: Exception):
        # Store and programming failures surface as a generic 500; the
        # detail goes to the log only
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return on_service_error(request, InternalError())
