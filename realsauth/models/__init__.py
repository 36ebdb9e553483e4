"""Data models for realsauth."""

from realsauth.models.user import User, Gender, normalize_email, is_valid_email

__all__ = [
    "User",
    "Gender",
    "normalize_email",
    "is_valid_email",
]
