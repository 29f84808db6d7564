"""Shared pytest fixtures for test suite"""
import os
import sys
from pathlib import Path
from typing import Generator

import pytest

# Settings are read at import time, so the environment has to be in place first
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["FIREBASE_PROJECT_ID"] = "test-project"
os.environ["FIREBASE_API_KEY"] = "test-api-key"
os.environ["ADMIN_EMAILS"] = "boss@example.com"
os.environ["SEED_PLANS_ON_STARTUP"] = "false"
os.environ["ENVIRONMENT"] = "test"

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.errors import UnauthorizedError
from app.main import app
from app.db.session import get_db
from app.models import Base
from app.models.user import User
from app.services.account_service import sync_account
from app.services.identity_service import IdentityClaims, IdentityProviderError, get_identity_provider


# SQLite in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

# Create test engine with StaticPool for in-memory database
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class FakeIdentityProvider:
    """Stands in for FirebaseIdentityProvider: bearer strings map to known claims"""

    def __init__(self):
        self.tokens = {}
        self.passwords = {}
        self.calls = []

    def add_identity(self, token, uid, email, name=None, password=None, email_verified=True):
        self.tokens[token] = IdentityClaims(uid=uid, email=email, email_verified=email_verified, name=name)
        if password is not None:
            self.passwords[email] = (password, token)

    def verify(self, token):
        if token == "expired-token":
            raise UnauthorizedError("Token has expired", code="auth/id-token-expired")
        claims = self.tokens.get(token)
        if not claims:
            raise UnauthorizedError("Invalid token", code="auth/invalid-token")
        return claims

    def sign_in_with_password(self, email, password):
        stored = self.passwords.get(email)
        if not stored or stored[0] != password:
            raise IdentityProviderError("INVALID_LOGIN_CREDENTIALS", 400)
        return {"idToken": stored[1], "refreshToken": f"refresh-{stored[1]}", "expiresIn": "3600"}

    def sign_up(self, email, password, display_name=None):
        if email in self.passwords:
            raise IdentityProviderError("EMAIL_EXISTS", 400)
        token = f"token-{len(self.tokens) + 1}"
        self.add_identity(token, f"uid-{len(self.tokens) + 1}", email, name=display_name, password=password)
        return {"idToken": token, "refreshToken": f"refresh-{token}", "expiresIn": "3600"}

    def refresh_id_token(self, refresh_token):
        token = refresh_token[len("refresh-"):] if refresh_token.startswith("refresh-") else None
        if token not in self.tokens:
            raise IdentityProviderError("INVALID_REFRESH_TOKEN", 400)
        return {
            "id_token": token,
            "refresh_token": refresh_token,
            "expires_in": "3600",
            "user_id": self.tokens[token].uid,
        }

    def update_account(self, uid, display_name=None, photo_url=None):
        self.calls.append(("update_account", uid, display_name, photo_url))

    def set_custom_claims(self, uid, claims):
        self.calls.append(("set_custom_claims", uid, claims))

    def delete_account(self, uid):
        self.calls.append(("delete_account", uid))

    def close(self):
        pass


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh SQLite in-memory database session for each test"""
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    # Create session
    session = TestSessionLocal()

    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def identity() -> FakeIdentityProvider:
    provider = FakeIdentityProvider()
    provider.add_identity("viewer-token", "uid-viewer", "viewer@example.com", name="Viewer", password="Secret123!")
    provider.add_identity("other-token", "uid-other", "other@example.com", name="Other")
    provider.add_identity("admin-token", "uid-admin", "admin@example.com", name="Admin")
    provider.add_identity("boss-token", "uid-boss", "boss@example.com", name="Boss")
    return provider


@pytest.fixture(scope="function")
def client(db_session: Session, identity: FakeIdentityProvider) -> Generator[TestClient, None, None]:
    """FastAPI test client with test database and fake identity provider"""

    # Override get_db dependency to use test database
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close session here, handled by fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity

    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        # Cleanup - always clear overrides
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_user(db_session: Session) -> User:
    """Account behind the "viewer-token" bearer credential"""
    return sync_account(uid="uid-viewer", email="viewer@example.com", display_name="Viewer", db=db_session)


@pytest.fixture(scope="function")
def test_user_2(db_session: Session) -> User:
    """Second account for ownership tests ("other-token")"""
    return sync_account(uid="uid-other", email="other@example.com", display_name="Other", db=db_session)


@pytest.fixture(scope="function")
def admin_user(db_session: Session) -> User:
    """Account with the stored admin role ("admin-token")"""
    user = sync_account(uid="uid-admin", email="admin@example.com", display_name="Admin", db=db_session)
    user.role = "admin"
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def auth_headers(test_user: User) -> dict:
    return {"Authorization": "Bearer viewer-token"}


@pytest.fixture(scope="function")
def other_headers(test_user_2: User) -> dict:
    return {"Authorization": "Bearer other-token"}


@pytest.fixture(scope="function")
def admin_headers(admin_user: User) -> dict:
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture(scope="function")
def boss_headers() -> dict:
    """Permanent admin listed in ADMIN_EMAILS; the account is created on first request"""
    return {"Authorization": "Bearer boss-token"}
