"""
Error taxonomy shared by the transport, the services and the callers.

Every error carries a single user-facing ``message``. Validation errors also
carry field-level messages so a form can show them next to the inputs.
"""

from typing import Optional


class VenueAdminError(Exception):
    """Base exception for all venue admin errors."""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(VenueAdminError):
    """Raised locally, before any remote call, when input is not acceptable."""

    default_message = "Please correct the highlighted fields"

    def __init__(self, errors: dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        errors: dict[str, str] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
            # First message per field wins
            errors.setdefault(field, error.get("msg", "Invalid value"))
        return cls(errors)


class ApiError(VenueAdminError):
    """The remote authority rejected the request."""

    default_message = "API Error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotFound(ApiError):
    default_message = "Resource not found"


class Unauthorized(ApiError):
    default_message = "Your session has expired. Please sign in again."


class ServerError(ApiError):
    default_message = "Server error. Please try again later."


class NetworkError(VenueAdminError):
    """Timeout or connection failure; the request never got a response."""

    default_message = "Network error. Check your connection and try again."


class InvalidTransition(VenueAdminError):
    """Raised when an illegal booking status change is requested."""

    def __init__(self, current: str, target: str, message: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(message or f"Cannot change booking status from {current} to {target}")


class ShapeMismatch(VenueAdminError):
    """No recognizable collection in a response envelope."""

    default_message = "Unrecognized response shape"


# Read queries retry these; mutations never do
TRANSIENT_ERRORS = (NetworkError, ServerError)
