"""Authentication service - email/password and Google sign-in through the identity provider"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, UnauthorizedError, ValidationError
from app.core.metrics import login_attempts_counter
from app.models.user import User
from app.services.account_service import serialize_user, sync_account
from app.services.identity_service import FirebaseIdentityProvider, IdentityClaims, IdentityProviderError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_EXPIRES_IN = 3600

# Refresh failures: provider message -> (error class, client message)
REFRESH_ERRORS = {
    "INVALID_REFRESH_TOKEN": (UnauthorizedError, "Invalid or expired refresh token. Please sign in again."),
    "INVALID_ARGUMENT": (UnauthorizedError, "Invalid or expired refresh token. Please sign in again."),
    "TOKEN_EXPIRED": (UnauthorizedError, "Refresh token has expired. Please sign in again."),
    "USER_DISABLED": (ForbiddenError, "User account has been disabled."),
    "USER_NOT_FOUND": (UnauthorizedError, "User not found. Please sign in again."),
}


def _session_payload(tokens: Dict[str, Any], claims: IdentityClaims, user: User) -> Dict[str, Any]:
    return {
        "idToken": tokens["idToken"],
        "refreshToken": tokens.get("refreshToken"),
        "expiresIn": int(tokens.get("expiresIn") or GOOGLE_TOKEN_EXPIRES_IN),
        "user": {
            "uid": claims.uid,
            "email": claims.email,
            "emailVerified": claims.email_verified,
            "displayName": claims.name or user.display_name,
            "photoURL": claims.picture,
            "role": user.role,
        },
        "userData": serialize_user(user),
    }


def _sync(claims: IdentityClaims, db: Session, display_name: Optional[str] = None) -> User:
    return sync_account(
        uid=claims.uid,
        email=claims.email,
        display_name=claims.name or display_name,
        photo_url=claims.picture,
        email_verified=claims.email_verified,
        db=db,
    )


def login_user(email: str, password: str, provider: FirebaseIdentityProvider, db: Session) -> Dict[str, Any]:
    """Sign in with email and password, then sync the account

    Raises:
        ValidationError: If the provider rejects the credentials
    """
    if not email or not password:
        raise ValidationError("Email and password are required")
    try:
        tokens = provider.sign_in_with_password(email, password)
    except IdentityProviderError as e:
        login_attempts_counter.labels(status="failed", method="password").inc()
        if e.status_code >= 500:
            raise
        logger.info(f"Login rejected for {email}: {e.message}")
        raise ValidationError(e.message)

    claims = provider.verify(tokens["idToken"])
    user = _sync(claims, db)
    login_attempts_counter.labels(status="success", method="password").inc()
    return _session_payload(tokens, claims, user)


def register_user(
    email: str,
    password: str,
    display_name: Optional[str],
    provider: FirebaseIdentityProvider,
    db: Session
) -> Dict[str, Any]:
    """Create the identity-provider account, then sync the local account"""
    if not email or not password:
        raise ValidationError("Email and password are required")
    try:
        tokens = provider.sign_up(email, password, display_name)
    except IdentityProviderError as e:
        if e.status_code >= 500:
            raise
        logger.info(f"Registration rejected for {email}: {e.message}")
        raise ValidationError(e.message)

    claims = provider.verify(tokens["idToken"])
    user = _sync(claims, db, display_name=display_name)
    return _session_payload(tokens, claims, user)


def google_login(id_token: str, provider: FirebaseIdentityProvider, db: Session) -> Dict[str, Any]:
    """Accept a provider ID token obtained by Google sign-in on the client

    Google sign-in yields no refresh token, so the ID token is returned in
    its place and clients re-authenticate when it expires.
    """
    if not id_token:
        raise ValidationError("Google ID token is required")
    try:
        claims = provider.verify(id_token)
    except UnauthorizedError:
        login_attempts_counter.labels(status="failed", method="google").inc()
        raise
    user = _sync(claims, db)
    login_attempts_counter.labels(status="success", method="google").inc()
    return _session_payload(
        {"idToken": id_token, "refreshToken": id_token, "expiresIn": GOOGLE_TOKEN_EXPIRES_IN},
        claims,
        user,
    )


def refresh_session(refresh_token: str, provider: FirebaseIdentityProvider) -> Dict[str, Any]:
    """Exchange a refresh token for a new ID token"""
    if not refresh_token:
        raise ValidationError("Refresh token is required")
    try:
        data = provider.refresh_id_token(refresh_token)
    except IdentityProviderError as e:
        if e.status_code >= 500:
            raise
        error_class, message = REFRESH_ERRORS.get(e.message, (ValidationError, e.message))
        raise error_class(message, code=e.message)

    return {
        "idToken": data.get("id_token"),
        "refreshToken": data.get("refresh_token"),
        "expiresIn": int(data.get("expires_in") or 0),
        "userId": data.get("user_id"),
    }
