"""Request/response models for authentication endpoints.

Request bodies use the mobile client's camelCase field names. Every field is
optional at this layer so that missing-field errors come from the identity
service with its own messages.
"""

from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator

DateInput = Optional[Union[datetime, date]]


class _RequestModel(BaseModel):
    model_config = {"populate_by_name": True}


class _PhoneRequest(_RequestModel):
    """Accepts both ``phoneNumber`` and ``phone``; ``phoneNumber`` wins."""

    phone: Optional[str] = Field(None, description="Phone number")
    phone_number: Optional[str] = Field(None, alias="phoneNumber", description="Phone number (preferred)")

    @model_validator(mode="after")
    def _resolve_phone(self):
        self.phone = self.phone_number or self.phone
        return self


class RegisterRequest(_PhoneRequest):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    date_of_birth: DateInput = Field(None, alias="dateOfBirth")
    gender: Optional[str] = None
    is_phone_verified: bool = Field(False, alias="isPhoneVerified")
    is_email_verified: bool = Field(False, alias="isEmailVerified")


class LoginRequest(_RequestModel):
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyPhoneRequest(_PhoneRequest):
    pass


class GoogleSignInRequest(_PhoneRequest):
    name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    date_of_birth: DateInput = Field(None, alias="dateOfBirth")
    gender: Optional[str] = None
    id_token: Optional[str] = Field(None, alias="idToken", description="Stored as the Google identity marker")


class UpdateProfileRequest(_PhoneRequest):
    name: Optional[str] = None
    date_of_birth: DateInput = Field(None, alias="dateOfBirth")
    gender: Optional[str] = None
    is_phone_verified: Optional[bool] = Field(None, alias="isPhoneVerified")


class GooglePhoneRequest(_RequestModel):
    server_auth_code: Optional[str] = Field(None, alias="serverAuthCode", description="Google server auth code")


class CheckUserRequest(_PhoneRequest):
    email: Optional[str] = None


class SetPasswordRequest(_RequestModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SendOtpEmailRequest(_RequestModel):
    email: Optional[str] = None
    name: Optional[str] = None
    otp: Optional[Union[str, int]] = Field(None, description="OTP generated by the client")


class AuthResponse(BaseModel):
    """Response model for sign-in style operations."""
    success: bool = True
    token: str
    user: dict


class UserResponse(BaseModel):
    success: bool = True
    user: dict


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class GooglePhoneResponse(BaseModel):
    success: bool = True
    phoneNumber: Optional[str] = None
