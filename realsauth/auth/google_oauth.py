"""Google OAuth2 bridge: server auth code -> account phone number."""

import logging
from typing import Optional

import httplib2
import requests
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from realsauth.config import Settings
from realsauth.errors import ConfigError, ExternalServiceError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
# Android/Web clients obtain server auth codes without a redirect URI.
POSTMESSAGE_REDIRECT_URI = "postmessage"


class GooglePhoneBridge:
    """Exchanges a Google server auth code and reads the account's phone number."""

    def __init__(self, client_id: str, client_secret: str, timeout_sec: float = 10.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout_sec = timeout_sec

    @classmethod
    def from_settings(cls, settings: Settings) -> "GooglePhoneBridge":
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            timeout_sec=settings.google_api_timeout_sec,
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def config_status(self) -> dict:
        """Report which credentials are present without exposing them."""
        return {
            "hasGoogleClientId": bool(self.client_id),
            "hasGoogleClientSecret": bool(self.client_secret),
            "clientIdLength": len(self.client_id or ""),
            "clientSecretLength": len(self.client_secret or ""),
        }

    def exchange_code(self, server_auth_code: str) -> dict:
        """Exchange an authorization code for OAuth tokens.

        Raises:
            ConfigError: If Google client credentials are not configured
            ExternalServiceError: If Google rejects the exchange
        """
        if not self.configured:
            logger.error("Google OAuth credentials not configured")
            raise ConfigError("Server configuration error: Google OAuth credentials missing")

        try:
            resp = requests.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": server_auth_code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": POSTMESSAGE_REDIRECT_URI,
                    "grant_type": "authorization_code",
                },
                timeout=self.timeout_sec,
            )
        except requests.RequestException as e:
            logger.error(f"Google token exchange failed: {type(e).__name__}: {e}")
            raise ExternalServiceError("Failed to fetch phone number from Google", detail=str(e)) from e

        if not resp.ok:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            error_code = body.get("error") if isinstance(body, dict) else None
            logger.error(f"Google token exchange rejected ({resp.status_code}): {error_code}")
            if error_code == "invalid_client":
                raise ExternalServiceError(
                    "Google OAuth configuration error. Please check your Google API credentials."
                )
            raise ExternalServiceError(
                "Failed to fetch phone number from Google",
                detail=(body.get("error_description") or error_code) if isinstance(body, dict) else None,
            )
        return resp.json()

    def fetch_phone_number(self, access_token: str) -> Optional[str]:
        """Read the first phone number on the authenticated Google account."""
        http = AuthorizedHttp(Credentials(token=access_token), http=httplib2.Http(timeout=self.timeout_sec))
        try:
            service = build("people", "v1", http=http, cache_discovery=False)
            person = (
                service.people()
                .get(resourceName="people/me", personFields="phoneNumbers")
                .execute(num_retries=0)
            )
        except (HttpError, OSError) as e:
            logger.error(f"Google People API error: {type(e).__name__}: {e}")
            raise ExternalServiceError("Failed to fetch phone number from Google", detail=str(e)) from e

        phone_numbers = person.get("phoneNumbers") or []
        if not phone_numbers:
            return None
        return phone_numbers[0].get("value")

    def lookup_phone(self, server_auth_code: str) -> Optional[str]:
        """Exchange ``server_auth_code`` and return the account phone number, if any."""
        tokens = self.exchange_code(server_auth_code)
        access_token = tokens.get("access_token")
        if not access_token:
            raise ExternalServiceError("Failed to fetch phone number from Google", detail="No access token returned")
        return self.fetch_phone_number(access_token)
