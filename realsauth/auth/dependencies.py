"""FastAPI dependencies for authentication."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from realsauth.config import settings
from realsauth.database.database import get_db
from realsauth.database.user_repository import UserRepository
from realsauth.auth.google_oauth import GooglePhoneBridge
from realsauth.auth.jwt import InvalidTokenError, TokenIssuer
from realsauth.engine.reconciliation import IdentityService
from realsauth.errors import UnauthorizedError
from realsauth.integrations.mailer import SmtpMailer

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)

_token_issuer = TokenIssuer.from_settings(settings)
_google_bridge = GooglePhoneBridge.from_settings(settings)
_mailer = SmtpMailer.from_settings(settings)


def get_token_issuer() -> TokenIssuer:
    return _token_issuer


def get_google_bridge() -> GooglePhoneBridge:
    return _google_bridge


def get_mailer() -> SmtpMailer:
    return _mailer


def get_identity_service(
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
    google: GooglePhoneBridge = Depends(get_google_bridge),
    mailer: SmtpMailer = Depends(get_mailer),
) -> IdentityService:
    """Build the per-request identity service around this request's DB session."""
    return IdentityService(UserRepository(db), tokens, google=google, mailer=mailer)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> str:
    """Get the authenticated user ID from the bearer token.

    Args:
        credentials: HTTP Bearer token credentials
        tokens: Token issuer used to verify the token

    Returns:
        User ID (token subject)

    Raises:
        UnauthorizedError: If the token is missing, invalid or expired
    """
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("No token provided")
    try:
        return tokens.get_user_id_from_token(credentials.credentials)
    except InvalidTokenError as e:
        raise UnauthorizedError("Invalid or expired token") from e
