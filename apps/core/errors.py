"""
Error taxonomy for service-layer failures.

Services raise these; the exception handlers in ``apps.core.responses``
turn them into enveloped HTTP responses with the matching status code.
"""


class ServiceError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(ServiceError):
    """Bad or missing input."""
    status_code = 400
    default_message = "Invalid input"


class Unauthenticated(ServiceError):
    """Missing, invalid or expired credentials."""
    status_code = 401
    default_message = "Not authorized"


class NotFound(ServiceError):
    """Resource absent, or not owned by the requester."""
    status_code = 404
    default_message = "Not found"


class Conflict(ServiceError):
    """Duplicate value for a unique field."""
    status_code = 409
    default_message = "Conflict"


class InternalError(ServiceError):
    """Unexpected failure. Clients only ever see the generic message."""
    status_code = 500
