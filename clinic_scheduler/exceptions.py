"""Error taxonomy raised by services and rendered by the API's exception handlers."""


class ClinicError(Exception):
    """Base exception for all clinic scheduler errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ClinicError):
    """Raised when request fields are missing or malformed."""

    status_code = 400
    default_message = "Invalid request"


class AuthError(ClinicError):
    """Raised when credentials or the bearer token are missing, wrong or expired."""

    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(ClinicError):
    """Raised for an invalid token or when the caller's role denies access."""

    status_code = 403
    default_message = "Access denied"


class NotFoundError(ClinicError):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"


class ConflictError(ClinicError):
    """Raised when a slot is taken or a unique value is already registered."""

    status_code = 409
    default_message = "Conflict"


class ServerError(ClinicError):
    """Catch-all for unexpected failures."""
