"""Pytest fixtures and configuration for realsauth tests."""

import os

# Predictable configuration before any realsauth module reads the environment.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from datetime import datetime
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from realsauth.database.database import Base
from realsauth.database import models  # noqa: F401
from realsauth.database.user_repository import UserRepository
from realsauth.auth.jwt import TokenIssuer
from realsauth.auth.google_oauth import GooglePhoneBridge
from realsauth.engine.reconciliation import IdentityService
from realsauth.integrations.mailer import SmtpMailer


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_JWT_SECRET = "test-secret"


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def token_issuer():
    return TokenIssuer(secret=TEST_JWT_SECRET)


@pytest.fixture
def google_bridge():
    """A configured bridge; tests patch its network calls."""
    return GooglePhoneBridge(client_id="test-client-id", client_secret="test-client-secret", timeout_sec=5)


@pytest.fixture
def mailer():
    """Mail sender double (no SMTP traffic)."""
    return MagicMock(spec=SmtpMailer)


@pytest.fixture
def identity_service(user_repository, token_issuer, google_bridge, mailer):
    return IdentityService(user_repository, token_issuer, google=google_bridge, mailer=mailer)


@pytest.fixture
def registration():
    """Valid registration arguments for IdentityService.register()."""
    return {
        "name": "Ann",
        "email": "ann@x.com",
        "date_of_birth": datetime(1990, 1, 1),
        "gender": "female",
    }


@pytest.fixture
def test_client(db_session: Session, token_issuer, google_bridge, mailer, monkeypatch):
    """Create a FastAPI test client with overridden database and collaborators."""
    from realsauth.api import app as app_module
    from realsauth.database.database import get_db
    from realsauth.auth.dependencies import get_token_issuer, get_google_bridge, get_mailer

    app = app_module.app

    # Schema comes from db_session; skip startup bootstrap against the real URL.
    monkeypatch.setattr(app_module, "init_db", lambda: None)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    app.dependency_overrides[get_google_bridge] = lambda: google_bridge
    app.dependency_overrides[get_mailer] = lambda: mailer

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
