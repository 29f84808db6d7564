"""Security tests - bearer extraction, role checks, error envelopes, access logging"""
import logging

import pytest

from app.core.errors import UnauthorizedError
from app.core.security import get_bearer_token, has_role
from app.models.user import User


@pytest.mark.critical
class TestBearerToken:

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "Bearer    "])
    def test_missing_or_malformed_header(self, header):
        with pytest.raises(UnauthorizedError) as exc_info:
            get_bearer_token(header)
        assert exc_info.value.extra["code"] == "auth/no-token"

    def test_token_extracted(self):
        assert get_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


@pytest.mark.critical
class TestRoles:

    def test_role_membership(self):
        moderator = User(email="mod@example.com", role="moderator")

        assert has_role(moderator, "admin", "moderator") is True
        assert has_role(moderator, "admin") is False

    def test_permanent_admin_overrides_stored_role(self):
        boss = User(email="boss@example.com", role="user")

        assert has_role(boss, "admin") is True


@pytest.mark.medium
class TestErrorRendering:

    def test_public_endpoints_need_no_token(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/api/plans").status_code == 200
        assert client.get("/api/testimonials").status_code == 200

    def test_api_health_checks_database(self, client):
        body = client.get("/api/health").json()

        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    def test_metrics_exposed(self, client, auth_headers):
        client.post("/api/profiles", json={"name": "Alice"}, headers=auth_headers)

        body = client.get("/metrics").text

        assert "movieflix_profile_operations_total" in body
        assert "movieflix_token_verification_failures_total" in body

    def test_malformed_json_is_400(self, client, auth_headers):
        response = client.post(
            "/api/profiles",
            content="{not json",
            headers={**auth_headers, "Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_access_log_written(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="api_access"):
            client.get("/api/profiles")

        records = [r for r in caplog.records if r.name == "api_access"]
        assert records
        assert records[-1].levelno == logging.WARNING
        assert '"status_code": 401' in records[-1].getMessage()
