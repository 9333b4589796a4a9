"""
Error taxonomy shared by the services and the HTTP boundary.

Every error carries the HTTP status it maps to and a message that is safe to
return to the client. Internal causes stay in the server log.
"""

from enum import Enum


class DenyReason(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    NOT_AUTHORIZED = "NotAuthorized"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    REFERENTIAL_CONFLICT = "ReferentialConflict"


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Access token required"


class InvalidToken(ApiError):
    status_code = 403
    default_message = "Invalid or expired token"


class NotAuthorized(ApiError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class EmptyChangeError(ValidationError):
    default_message = "No fields to update"


class Conflict(ApiError):
    status_code = 409
    default_message = "A record with this value already exists"


class CapacityExceeded(ApiError):
    status_code = 400
    default_message = "Schedule is full"


class ReferentialConflict(ApiError):
    status_code = 400
    default_message = "Referenced record still in use"


_REASON_ERRORS = {
    DenyReason.UNAUTHENTICATED: Unauthenticated,
    DenyReason.NOT_AUTHORIZED: NotAuthorized,
    DenyReason.NOT_FOUND: NotFound,
    DenyReason.CONFLICT: Conflict,
    DenyReason.REFERENTIAL_CONFLICT: ReferentialConflict,
}


def error_for_reason(reason: DenyReason, message: str = None) -> ApiError:
    """Build the ApiError a policy deny reason is surfaced as."""
    return _REASON_ERRORS.get(reason, NotAuthorized)(message)
