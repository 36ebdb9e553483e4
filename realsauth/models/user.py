"""User data model for realsauth."""

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"^\w+([\.-]?\w+)*@\w+([\.-]?\w+)*(\.\w{2,})+$")


class Gender(str, Enum):
    """Gender enumeration."""
    MALE = "male"
    FEMALE = "female"
    TRANSGENDER = "transgender"
    OTHER = "other"


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Trim and lowercase an email; empty values become None."""
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class User(BaseModel):
    """Canonical User model.

    ``password_hash`` is internal: it is never part of any profile view.
    """

    id: str = Field(..., description="Unique user identifier (UUID v4)")
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Lowercased email, unique when set")
    phone: Optional[str] = Field(None, description="Phone number, unique when set")
    password_hash: Optional[str] = Field(None, description="bcrypt hash, never returned to callers")
    date_of_birth: Optional[datetime] = Field(None, description="Date of birth")
    gender: Optional[Gender] = Field(None, description="Gender")
    photo_url: str = Field("", description="Profile photo URL")
    google_id: Optional[str] = Field(None, description="Google identity marker, unique when set")
    is_phone_verified: bool = Field(False, description="Phone ownership verified")
    is_email_verified: bool = Field(False, description="Email ownership verified")
    registration_complete: bool = Field(False, description="Name, date of birth and gender supplied")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v):
        v = normalize_email(v)
        if v is not None and not is_valid_email(v):
            raise ValueError("Please provide a valid email")
        return v

    @field_validator("name", "phone", "google_id")
    @classmethod
    def _strip_optional(cls, v):
        return _blank_to_none(v)

    @property
    def can_login_with_password(self) -> bool:
        return bool(self.password_hash)

    def basic_profile(self) -> dict:
        """Profile returned by sign-in style operations."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "registrationComplete": self.registration_complete,
        }

    def full_profile(self) -> dict:
        """Profile returned to the authenticated owner."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "dateOfBirth": self.date_of_birth,
            "gender": self.gender.value if self.gender else None,
            "photoURL": self.photo_url,
            "isPhoneVerified": self.is_phone_verified,
            "isEmailVerified": self.is_email_verified,
            "registrationComplete": self.registration_complete,
        }
