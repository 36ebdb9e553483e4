"""Tests for access token issuance and verification."""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from realsauth.auth.jwt import InvalidTokenError, TokenIssuer
from realsauth.config import Settings


def test_token_round_trips_user_id(token_issuer):
    token = token_issuer.create_access_token("user-123")

    assert token
    assert token_issuer.get_user_id_from_token(token) == "user-123"


def test_token_expires_after_one_hour(token_issuer):
    payload = token_issuer.decode_access_token(token_issuer.create_access_token("user-123"))

    assert payload["exp"] - payload["iat"] == 3600


def test_expired_token_is_rejected(token_issuer):
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = pyjwt.encode(
        {"sub": "user-123", "iat": past, "exp": past + timedelta(hours=1)},
        "test-secret",
        algorithm="HS256",
    )

    with pytest.raises(InvalidTokenError, match="expired"):
        token_issuer.get_user_id_from_token(token)


def test_token_signed_with_other_secret_is_rejected(token_issuer):
    other = TokenIssuer(secret="another-secret")
    token = other.create_access_token("user-123")

    with pytest.raises(InvalidTokenError):
        token_issuer.get_user_id_from_token(token)


def test_garbage_token_is_rejected(token_issuer):
    with pytest.raises(InvalidTokenError):
        token_issuer.get_user_id_from_token("not.a.token")


def test_token_without_subject_is_rejected(token_issuer):
    now = datetime.now(timezone.utc)
    token = pyjwt.encode({"iat": now, "exp": now + timedelta(hours=1)}, "test-secret", algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        token_issuer.get_user_id_from_token(token)


def test_from_settings_uses_configured_secret_and_window():
    issuer = TokenIssuer.from_settings(Settings(jwt_secret="abc", jwt_expiration_minutes=5))

    assert issuer.secret == "abc"
    assert issuer.expires_minutes == 5
