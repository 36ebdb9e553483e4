"""Identity reconciliation engine for realsauth."""

from realsauth.errors import (
    AuthError,
    ValidationError,
    ConflictError,
    WrongMethodError,
    UnauthorizedError,
    NotFoundError,
    ConfigError,
    ExternalServiceError,
)
from realsauth.engine.reconciliation import IdentityService, AuthResult

__all__ = [
    "AuthError",
    "ValidationError",
    "ConflictError",
    "WrongMethodError",
    "UnauthorizedError",
    "NotFoundError",
    "ConfigError",
    "ExternalServiceError",
    "IdentityService",
    "AuthResult",
]
