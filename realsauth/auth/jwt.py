"""JWT token generation and validation for realsauth."""

from datetime import datetime, timedelta, timezone
from typing import Dict

import jwt

from realsauth.config import Settings


class InvalidTokenError(Exception):
    """Token is malformed, expired, badly signed or has no subject."""


class TokenIssuer:
    """Signs and verifies short-lived access tokens bound to a user id."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 60):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_minutes=settings.jwt_expiration_minutes,
        )

    def create_access_token(self, user_id: str) -> str:
        """Create a JWT access token for a user.

        Args:
            user_id: User ID to encode in token

        Returns:
            Encoded JWT token string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,  # Subject (user ID)
            "iat": now,
            "exp": now + timedelta(minutes=self.expires_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> Dict:
        """Decode and validate a JWT access token.

        Raises:
            InvalidTokenError: If the token is expired or invalid
        """
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Token is invalid") from e

    def get_user_id_from_token(self, token: str) -> str:
        """Extract user ID from a JWT token.

        Raises:
            InvalidTokenError: If the token is invalid or carries no subject
        """
        user_id = self.decode_access_token(token).get("sub")
        if not user_id:
            raise InvalidTokenError("Token has no subject")
        return user_id
