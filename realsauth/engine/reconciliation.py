"""Identity reconciliation for realsauth.

Every sign-in path (email + password, phone possession, Google account) ends
up here. Each operation decides whether to create, merge into, or reject a
user record, then mints a fresh access token for the resulting user.

Rules worth knowing:
- Email, phone and Google id are each unique when set. Pre-checks give friendly
  errors, and the database constraint settles races (DuplicateKeyError).
- ``registration_complete`` only becomes true through ``register`` or
  ``update_profile``; Google sign-in never changes it on an existing user.
- Users created by Google sign-in get a random hashed password nobody knows,
  so password login only works once ``set_password`` is called.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

from realsauth.auth.google_oauth import GooglePhoneBridge
from realsauth.auth.jwt import TokenIssuer
from realsauth.auth.passwords import (
    MIN_PASSWORD_LENGTH,
    generate_throwaway_password,
    hash_password,
    verify_password,
)
from realsauth.database.user_repository import DuplicateKeyError, UserRepository
from realsauth.errors import (
    ConfigError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    WrongMethodError,
)
from realsauth.integrations.mailer import OTP_SUBJECT, MailDeliveryError, SmtpMailer, render_otp_email
from realsauth.models.user import Gender, User, is_valid_email, normalize_email

logger = logging.getLogger(__name__)

DateLike = Union[datetime, date, None]

INVALID_CREDENTIALS = "Invalid email or password"
WRONG_METHOD = (
    "This account was created with Google Sign-In or phone verification. "
    "Please use the original sign-in method."
)
CONFLICT_MESSAGES = {
    "email": "Email already in use",
    "phone": "Phone number already in use",
    "google_id": "Google account already linked to another user",
}


@dataclass
class AuthResult:
    """A user plus the access token minted for them."""
    user: User
    token: str


def _conflict(error: DuplicateKeyError, fallback: str) -> ConflictError:
    return ConflictError(CONFLICT_MESSAGES.get(error.field, fallback))


def _as_datetime(value: DateLike) -> Optional[datetime]:
    """Coerce a date or datetime to a naive UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime(value.year, value.month, value.day)


def _as_gender(value: Union[Gender, str, None]) -> Optional[Gender]:
    if value is None or value == "":
        return None
    if isinstance(value, Gender):
        return value
    try:
        return Gender(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(g.value for g in Gender)
        raise ValidationError(f"Gender must be one of: {allowed}")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_email(email: Optional[str]) -> str:
    email = normalize_email(email)
    if email and not is_valid_email(email):
        raise ValidationError("Please provide a valid email")
    return email


def _require_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class IdentityService:
    """Create, match and merge users across the three identity signals."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenIssuer,
        google: Optional[GooglePhoneBridge] = None,
        mailer: Optional[SmtpMailer] = None,
    ):
        self.users = users
        self.tokens = tokens
        self.google = google
        self.mailer = mailer

    def _issue(self, user: User) -> AuthResult:
        return AuthResult(user=user, token=self.tokens.create_access_token(user.id))

    def _new_user(self, **fields) -> User:
        now = datetime.utcnow()
        return User(id=str(uuid.uuid4()), created_at=now, updated_at=now, **fields)

    def _save(self, user: User, fallback: str) -> User:
        user.updated_at = datetime.utcnow()
        try:
            return self.users.update(user)
        except DuplicateKeyError as e:
            raise _conflict(e, fallback) from e

    # ------------------------------------------------------------------
    # Email + password
    # ------------------------------------------------------------------

    def register(
        self,
        name: Optional[str],
        email: Optional[str],
        date_of_birth: DateLike,
        gender: Union[Gender, str, None],
        phone: Optional[str] = None,
        password: Optional[str] = None,
        is_phone_verified: bool = False,
        is_email_verified: bool = False,
    ) -> AuthResult:
        """Create a fully registered user.

        Raises:
            ValidationError: If name, email, date of birth or gender is missing
            ConflictError: If the email or phone is already in use
        """
        name = _clean(name)
        phone = _clean(phone)
        email_lower = _require_email(email)
        logger.info(f"Registration attempt for email: {email_lower}, phone: {phone}")

        if not name or not email_lower or not date_of_birth or not gender:
            raise ValidationError("Name, email, date of birth, and gender are required")
        gender_value = _as_gender(gender)
        if password:
            _require_password_length(password)

        if self.users.get_by_email(email_lower):
            logger.info(f"Email already in use: {email_lower}")
            raise ConflictError(CONFLICT_MESSAGES["email"])
        if phone and self.users.get_by_phone(phone):
            logger.info(f"Phone number already in use: {phone}")
            raise ConflictError(CONFLICT_MESSAGES["phone"])

        user = self._new_user(
            name=name,
            email=email_lower,
            phone=phone,
            password_hash=hash_password(password) if password else None,
            date_of_birth=_as_datetime(date_of_birth),
            gender=gender_value,
            is_phone_verified=bool(is_phone_verified),
            is_email_verified=bool(is_email_verified),
            registration_complete=True,
        )
        try:
            user = self.users.create(user)
        except DuplicateKeyError as e:
            raise _conflict(e, "Registration failed") from e

        logger.info(f"User registered successfully: {email_lower}")
        return self._issue(user)

    def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        """Authenticate with email and password.

        Raises:
            ValidationError: If email or password is missing
            NotFoundError: If no user has this email
            WrongMethodError: If the account has no password
            UnauthorizedError: If the password does not match
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        email_lower = normalize_email(email)
        logger.info(f"Login attempt for email: {email_lower}")
        user = self.users.get_by_email(email_lower)
        if user is None:
            raise NotFoundError(INVALID_CREDENTIALS)
        if not user.can_login_with_password:
            logger.info(f"User {email_lower} has no password set")
            raise WrongMethodError(WRONG_METHOD)
        if not verify_password(password, user.password_hash):
            logger.info(f"Wrong password for user: {email_lower}")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        logger.info(f"Login successful for user: {email_lower}")
        return self._issue(user)

    def set_password(self, email: Optional[str], password: Optional[str]) -> User:
        """Hash and overwrite the password of the user with this email.

        Raises:
            ValidationError: If email or password is missing or too short
            NotFoundError: If no user has this email
        """
        if not email or not password:
            raise ValidationError("Email and password are required")
        _require_password_length(password)

        user = self.users.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        user.password_hash = hash_password(password)
        user = self._save(user, "Set password failed")
        logger.info(f"Password set for user: {user.email}")
        return user

    # ------------------------------------------------------------------
    # Phone possession
    # ------------------------------------------------------------------

    def verify_phone(self, phone: Optional[str]) -> AuthResult:
        """Sign in by verified phone, creating a minimal user on first contact.

        Raises:
            ValidationError: If phone is missing
        """
        phone = _clean(phone)
        logger.info(f"Phone verification attempt for: {phone}")
        if not phone:
            raise ValidationError("Phone number is required")

        user = self.users.get_by_phone(phone)
        if user is None:
            try:
                user = self.users.create(
                    self._new_user(phone=phone, is_phone_verified=True, registration_complete=False)
                )
                logger.info(f"New user created for phone: {phone}")
            except DuplicateKeyError:
                # Lost a race with a concurrent first contact for the same phone.
                user = self.users.get_by_phone(phone)
                if user is None:
                    raise
        return self._issue(user)

    # ------------------------------------------------------------------
    # Google account
    # ------------------------------------------------------------------

    def google_sign_in(
        self,
        email: Optional[str],
        name: Optional[str] = None,
        phone: Optional[str] = None,
        photo_url: Optional[str] = None,
        date_of_birth: DateLike = None,
        gender: Union[Gender, str, None] = None,
        id_token: Optional[str] = None,
    ) -> AuthResult:
        """Sign in with a Google profile, merging into an existing email match.

        Raises:
            ValidationError: If email is missing or malformed
            ConflictError: If the phone or Google id belongs to another user
        """
        email_lower = _require_email(email)
        if not email_lower:
            raise ValidationError("Email is required")
        logger.info(f"Google sign-in attempt for email: {email_lower}")

        name = _clean(name)
        phone = _clean(phone)
        id_token = _clean(id_token)
        gender_value = _as_gender(gender)
        dob = _as_datetime(date_of_birth)

        user = self.users.get_by_email(email_lower)
        if user is not None:
            if id_token and not user.google_id:
                user.google_id = id_token
            if name:
                user.name = name
            if photo_url:
                user.photo_url = photo_url
            if phone:
                user.phone = phone
            if dob:
                user.date_of_birth = dob
            if gender_value:
                user.gender = gender_value
            user.is_email_verified = True
            user = self._save(user, "Google sign-in failed")
            logger.info(f"Updated Google info for user: {email_lower}")
            return self._issue(user)

        user = self._new_user(
            name=name,
            email=email_lower,
            phone=phone,
            password_hash=hash_password(generate_throwaway_password()),
            photo_url=photo_url or "",
            date_of_birth=dob or datetime.utcnow(),
            gender=gender_value or Gender.OTHER,
            google_id=id_token,
            is_email_verified=True,
            is_phone_verified=False,
            registration_complete=False,
        )
        try:
            user = self.users.create(user)
        except DuplicateKeyError as e:
            raise _conflict(e, "Google sign-in failed") from e

        logger.info(f"New user created via Google sign-in: {email_lower}")
        return self._issue(user)

    def google_phone_lookup(self, server_auth_code: Optional[str]) -> Optional[str]:
        """Fetch the phone number on the Google account behind an auth code.

        No local state is touched; deciding what to do with the number is the
        caller's business.

        Raises:
            ValidationError: If the auth code is missing
            ConfigError: If Google OAuth credentials are not configured
            ExternalServiceError: If Google fails
        """
        if not server_auth_code:
            raise ValidationError("Server auth code is required")
        if self.google is None or not self.google.configured:
            logger.error("Google OAuth credentials not configured")
            raise ConfigError("Server configuration error: Google OAuth credentials missing")
        return self.google.lookup_phone(server_auth_code)

    def google_config_status(self) -> dict:
        if self.google is None:
            return GooglePhoneBridge("", "").config_status()
        return self.google.config_status()

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def update_profile(
        self,
        user_id: str,
        name: Optional[str],
        date_of_birth: DateLike,
        gender: Union[Gender, str, None],
        phone: Optional[str] = None,
        is_phone_verified: Optional[bool] = None,
    ) -> AuthResult:
        """Complete or change the profile of the authenticated user.

        Raises:
            ValidationError: If name, date of birth or gender is missing
            NotFoundError: If the user no longer exists
            ConflictError: If the new phone belongs to another user
        """
        name = _clean(name)
        if not name or not date_of_birth or not gender:
            raise ValidationError("Name, date of birth, and gender are required")
        gender_value = _as_gender(gender)

        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")

        phone = _clean(phone)
        if phone:
            user.phone = phone
        user.name = name
        user.date_of_birth = _as_datetime(date_of_birth)
        user.gender = gender_value
        if is_phone_verified is not None:
            user.is_phone_verified = bool(is_phone_verified)
        user.registration_complete = True

        user = self._save(user, "Profile update failed")
        logger.info(f"Profile updated for user: {user.id}")
        return self._issue(user)

    def get_profile(self, user_id: str) -> User:
        """Raises NotFoundError if the user no longer exists."""
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def check_user(self, phone: Optional[str] = None, email: Optional[str] = None) -> User:
        """Look a user up by phone and/or email (both narrow the same query).

        Raises:
            ValidationError: If neither phone nor email is given
            NotFoundError: If no user matches
        """
        phone = _clean(phone)
        email = normalize_email(email)
        logger.info(f"Check user attempt - email: {email}, phone: {phone}")
        if not phone and not email:
            raise ValidationError("Phone or email is required")

        user = self.users.find_one(email=email, phone=phone)
        if user is None:
            logger.info(f"User not found for email: {email}, phone: {phone}")
            raise NotFoundError("User not found")
        return user

    # ------------------------------------------------------------------
    # OTP delivery
    # ------------------------------------------------------------------

    def send_otp_email(self, email: Optional[str], otp: Optional[str], name: Optional[str] = None) -> None:
        """Email a caller-generated OTP. The OTP is neither generated nor stored here.

        Raises:
            ValidationError: If email or otp is missing
            ConfigError: If no mail sender is configured
            ExternalServiceError: If delivery fails
        """
        if not email or not otp:
            raise ValidationError("Email and OTP are required")
        if self.mailer is None:
            raise ConfigError("Server configuration error: mail sender missing")

        html = render_otp_email(email, otp, name)
        try:
            self.mailer.send(email, OTP_SUBJECT, html)
        except MailDeliveryError as e:
            raise ExternalServiceError("Failed to send OTP email") from e
