"""Error taxonomy for identity operations.

Each error carries the HTTP status the API layer should answer with.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for caller-visible identity errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AuthError):
    """A required field is missing or malformed."""
    status_code = 400


class ConflictError(AuthError):
    """Email, phone or Google id already belongs to another user."""
    status_code = 400


class WrongMethodError(AuthError):
    """Password login attempted on an account that has no password."""
    status_code = 400


class UnauthorizedError(AuthError):
    status_code = 401


class NotFoundError(AuthError):
    status_code = 404


class ConfigError(AuthError):
    """Required server-side credentials are not configured."""
    status_code = 500


class ExternalServiceError(AuthError):
    """An upstream provider (Google, SMTP) failed."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail
