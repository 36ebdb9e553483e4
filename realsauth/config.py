"""Runtime configuration for realsauth.

Everything the service needs from the environment is read once into an
immutable ``Settings`` value and handed to the components that need it.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Immutable service configuration."""

    database_url: str = "sqlite:///./realsauth.db"

    # Token issuance
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60

    # Google OAuth (server auth code exchange)
    google_client_id: str = ""
    google_client_secret: str = ""
    google_api_timeout_sec: float = 10.0

    # Outbound mail
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout: int = 10
    mail_user: str = ""
    mail_password: str = ""
    mail_from_name: str = "Reals TO Chat"

    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5000", "http://10.0.2.2:5000"]
    )


def load_settings(env: Optional[dict] = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        env: Mapping to read from (defaults to ``os.environ``)

    Returns:
        Settings instance
    """
    env = os.environ if env is None else env
    defaults = Settings()
    cors = env.get("CORS_ORIGINS")
    return Settings(
        database_url=env.get("DATABASE_URL", defaults.database_url),
        jwt_secret=env.get("JWT_SECRET", defaults.jwt_secret),
        jwt_algorithm=env.get("JWT_ALGORITHM", defaults.jwt_algorithm),
        jwt_expiration_minutes=int(env.get("JWT_EXPIRATION_MINUTES", defaults.jwt_expiration_minutes)),
        google_client_id=env.get("GOOGLE_CLIENT_ID", ""),
        google_client_secret=env.get("GOOGLE_CLIENT_SECRET", ""),
        google_api_timeout_sec=float(env.get("GOOGLE_API_TIMEOUT_SEC", defaults.google_api_timeout_sec)),
        smtp_host=env.get("SMTP_HOST", defaults.smtp_host),
        smtp_port=int(env.get("SMTP_PORT", defaults.smtp_port)),
        smtp_timeout=int(env.get("SMTP_TIMEOUT", defaults.smtp_timeout)),
        mail_user=env.get("GMAIL_EMAIL", ""),
        mail_password=env.get("GMAIL_PASSWORD", ""),
        mail_from_name=env.get("MAIL_FROM_NAME", defaults.mail_from_name),
        cors_origins=_csv(cors) if cors else defaults.cors_origins,
    )


settings = load_settings()
