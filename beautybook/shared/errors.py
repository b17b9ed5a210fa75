"""Domain exceptions mapped to HTTP responses by the handlers in main.py"""

from typing import Optional


class BookingError(Exception):
    """Base class for errors raised by domain services"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(BookingError):
    status_code = 400
    code = "VALIDATION_ERROR"


class UnauthorizedError(BookingError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized", details: Optional[dict] = None):
        super().__init__(message, details)


class ForbiddenError(BookingError):
    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden", details: Optional[dict] = None):
        super().__init__(message, details)


class NotFoundError(BookingError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found", details: Optional[dict] = None):
        super().__init__(message, details)


class ConflictError(BookingError):
    status_code = 409
    code = "CONFLICT"


class ExternalServiceError(BookingError):
    """A collaborator (payments, email, SMS, calendar) failed on a blocking path"""

    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"
