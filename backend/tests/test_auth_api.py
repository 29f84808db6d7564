"""Authentication endpoint tests"""
import pytest

from app.models.user import User


@pytest.mark.critical
class TestAuthentication:

    def test_login_syncs_account(self, client, db_session):
        response = client.post("/api/auth/login", json={"email": "viewer@example.com", "password": "Secret123!"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["idToken"] == "viewer-token"
        assert data["expiresIn"] == 3600
        assert data["user"]["uid"] == "uid-viewer"
        assert data["userData"]["email"] == "viewer@example.com"
        assert db_session.query(User).filter(User.firebase_uid == "uid-viewer").count() == 1

    def test_login_with_invalid_credentials(self, client):
        response = client.post("/api/auth/login", json={"email": "viewer@example.com", "password": "wrong"})

        assert response.status_code == 400
        assert response.json()["message"] == "INVALID_LOGIN_CREDENTIALS"

    def test_login_rejects_bad_email(self, client):
        response = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})

        assert response.status_code == 400

    def test_register_creates_account(self, client, db_session):
        response = client.post(
            "/api/auth/register",
            json={"email": "new@example.com", "password": "Secret123!", "displayName": "Newbie"}
        )

        assert response.status_code == 201
        user = db_session.query(User).filter(User.email == "new@example.com").first()
        assert user.display_name == "Newbie"

    def test_register_existing_email(self, client):
        response = client.post("/api/auth/register", json={"email": "viewer@example.com", "password": "x1234567"})

        assert response.status_code == 400
        assert response.json()["message"] == "EMAIL_EXISTS"

    def test_google_login(self, client):
        response = client.post("/api/auth/google-login", json={"idToken": "other-token"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["refreshToken"] == "other-token"
        assert data["expiresIn"] == 3600
        assert data["userData"]["email"] == "other@example.com"

    def test_google_login_bad_token(self, client):
        response = client.post("/api/auth/google-login", json={"idToken": "forged"})

        assert response.status_code == 401
        assert response.json()["code"] == "auth/invalid-token"

    def test_refresh(self, client):
        response = client.post("/api/auth/refresh", json={"refreshToken": "refresh-viewer-token"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["idToken"] == "viewer-token"
        assert data["userId"] == "uid-viewer"

    def test_refresh_invalid(self, client):
        response = client.post("/api/auth/refresh", json={"refreshToken": "nope"})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_REFRESH_TOKEN"

    def test_logout(self, client):
        assert client.post("/api/auth/logout").json()["success"] is True
