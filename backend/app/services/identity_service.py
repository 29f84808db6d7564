"""Identity provider client (Firebase Authentication)

Bearer ID tokens are verified locally against Google's published signing
certificates with google-auth. Account administration (delete, profile
update, custom claims) and the email/password flows go through the
Identity Toolkit REST API with httpx.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import google.auth
import httpx
from fastapi import Request
from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2 import id_token, service_account

from app.core.config import (
    settings, FIREBASE_AUTH_URL, FIREBASE_ADMIN_URL, FIREBASE_TOKEN_URL, FIREBASE_ADMIN_SCOPES
)
from app.core.errors import UnauthorizedError

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")

REST_TIMEOUT = 10.0


@dataclass
class IdentityClaims:
    """What the rest of the app needs from a verified ID token"""
    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None
    picture: Optional[str] = None


class IdentityProviderError(Exception):
    """Error returned by the identity provider's REST API"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class FirebaseIdentityProvider:
    """Client for one Firebase project.

    Created once at startup and shared by every request. Service account
    credentials are resolved on first admin call, so a process that only
    verifies tokens needs nothing beyond the project id.
    """

    def __init__(
        self,
        project_id: str,
        api_key: str = "",
        client_email: str = "",
        private_key: str = "",
        credentials_file: str = "",
        http_client: Optional[httpx.Client] = None,
    ):
        self.project_id = project_id
        self.api_key = api_key
        self._client_email = client_email
        self._private_key = private_key
        self._credentials_file = credentials_file
        self._credentials = None
        self._http = http_client or httpx.Client(timeout=REST_TIMEOUT)
        self._google_request = GoogleRequest()

    @classmethod
    def from_settings(cls) -> "FirebaseIdentityProvider":
        return cls(
            project_id=settings.FIREBASE_PROJECT_ID,
            api_key=settings.FIREBASE_API_KEY,
            client_email=settings.FIREBASE_CLIENT_EMAIL,
            private_key=settings.FIREBASE_PRIVATE_KEY,
            credentials_file=settings.FIREBASE_CREDENTIALS_FILE,
        )

    def close(self):
        self._http.close()

    # ---- Token verification ----

    def verify(self, token: str) -> IdentityClaims:
        """Verify a Firebase ID token

        Raises:
            UnauthorizedError: With code auth/id-token-expired or auth/invalid-token
        """
        if not self.project_id:
            raise UnauthorizedError("Identity provider is not configured", code="auth/not-configured")
        try:
            claims = id_token.verify_firebase_token(
                token, self._google_request, audience=self.project_id
            )
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            message = str(e)
            if "expired" in message.lower():
                raise UnauthorizedError("Token has expired", code="auth/id-token-expired")
            security_logger.warning(f"ID token rejected: {message}")
            raise UnauthorizedError("Invalid token", code="auth/invalid-token")

        if not claims or claims.get("iss") != f"https://securetoken.google.com/{self.project_id}":
            raise UnauthorizedError("Invalid token", code="auth/invalid-token")

        uid = claims.get("user_id") or claims.get("sub")
        if not uid:
            raise UnauthorizedError("Invalid token", code="auth/invalid-token")

        return IdentityClaims(
            uid=uid,
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
            name=claims.get("name"),
            picture=claims.get("picture"),
        )

    # ---- Admin operations ----

    def _get_credentials(self):
        """Resolve service account credentials: inline pair, then file, then ambient default"""
        if self._credentials is None:
            if self._client_email and self._private_key:
                info = {
                    "type": "service_account",
                    "project_id": self.project_id,
                    "client_email": self._client_email,
                    "private_key": self._private_key,
                    "token_uri": "https://oauth2.googleapis.com/token",
                }
                self._credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=FIREBASE_ADMIN_SCOPES
                )
                logger.info("Using inline Firebase service account credentials")
            elif self._credentials_file:
                self._credentials = service_account.Credentials.from_service_account_file(
                    self._credentials_file, scopes=FIREBASE_ADMIN_SCOPES
                )
                logger.info(f"Using Firebase credentials file {self._credentials_file}")
            else:
                self._credentials, _ = google.auth.default(scopes=FIREBASE_ADMIN_SCOPES)
                logger.info("Using application default credentials for Firebase")

        if not self._credentials.valid:
            self._credentials.refresh(self._google_request)
        return self._credentials

    def _admin_post(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        credentials = self._get_credentials()
        response = self._http.post(
            f"{FIREBASE_ADMIN_URL}/{self.project_id}/accounts:{action}",
            json=payload,
            headers={"Authorization": f"Bearer {credentials.token}"},
        )
        return self._parse(response)

    def delete_account(self, uid: str) -> None:
        self._admin_post("delete", {"localId": uid})
        logger.info(f"Deleted identity provider account {uid}")

    def update_account(self, uid: str, display_name: Optional[str] = None, photo_url: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"localId": uid}
        if display_name:
            payload["displayName"] = display_name
        if photo_url:
            payload["photoUrl"] = photo_url
        if len(payload) == 1:
            return
        self._admin_post("update", payload)

    def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        self._admin_post("update", {"localId": uid, "customAttributes": json.dumps(claims)})

    # ---- Email/password flows (web API key) ----

    def _require_api_key(self):
        if not self.api_key:
            raise IdentityProviderError("Server configuration error: FIREBASE_API_KEY not set", 500)

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        self._require_api_key()
        response = self._http.post(
            f"{FIREBASE_AUTH_URL}:signInWithPassword",
            params={"key": self.api_key},
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return self._parse(response)

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        self._require_api_key()
        payload = {"email": email, "password": password, "returnSecureToken": True}
        if display_name:
            payload["displayName"] = display_name
        response = self._http.post(
            f"{FIREBASE_AUTH_URL}:signUp",
            params={"key": self.api_key},
            json=payload,
        )
        return self._parse(response)

    def refresh_id_token(self, refresh_token: str) -> Dict[str, Any]:
        self._require_api_key()
        response = self._http.post(
            FIREBASE_TOKEN_URL,
            params={"key": self.api_key},
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.is_error:
            error = data.get("error") if isinstance(data, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            raise IdentityProviderError(message or f"Identity provider error ({response.status_code})", response.status_code)
        return data


def get_identity_provider(request: Request) -> FirebaseIdentityProvider:
    """Dependency: the process-wide identity provider client"""
    return request.app.state.identity_provider
