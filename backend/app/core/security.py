"""Security dependencies: bearer authentication, role checks, access logging"""
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.metrics import token_verification_failures_counter
from app.db.session import get_db
from app.models.user import User
from app.services.account_service import is_permanent_admin, sync_account
from app.services.identity_service import FirebaseIdentityProvider, get_identity_provider

security_logger = logging.getLogger("security")
api_access_logger = logging.getLogger("api_access")


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Dependency: Extract the bearer token from the Authorization header"""
    if not authorization or not authorization.startswith("Bearer "):
        token_verification_failures_counter.labels(code="auth/no-token").inc()
        raise UnauthorizedError("No token provided", code="auth/no-token")
    token = authorization[len("Bearer "):].strip()
    if not token:
        token_verification_failures_counter.labels(code="auth/no-token").inc()
        raise UnauthorizedError("No token provided", code="auth/no-token")
    return token


def get_current_user(
    request: Request,
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
    provider: FirebaseIdentityProvider = Depends(get_identity_provider),
) -> User:
    """Dependency: Verify the bearer token and return the synced account"""
    try:
        claims = provider.verify(token)
    except UnauthorizedError as e:
        code = e.extra.get("code", "auth/invalid-token")
        token_verification_failures_counter.labels(code=code).inc()
        security_logger.warning(
            f"Token verification failed - Code: {code}, "
            f"IP: {request.client.host if request.client else 'unknown'}, "
            f"Path: {request.url.path}"
        )
        raise

    user = sync_account(
        uid=claims.uid,
        email=claims.email,
        display_name=claims.name,
        photo_url=claims.picture,
        email_verified=claims.email_verified,
        db=db,
    )
    if not user.is_active:
        raise ForbiddenError("Account is disabled")

    request.state.user_id = user.id
    return user


def has_role(user: User, *roles: str) -> bool:
    """Role check with the permanent-admin override applied first"""
    if is_permanent_admin(user.email):
        return True
    return user.role in roles


def require_role(*roles: str):
    """Dependency factory: Require the current user to hold one of ``roles``"""

    def dependency(request: Request, user: User = Depends(get_current_user)) -> User:
        if not has_role(user, *roles):
            security_logger.warning(
                f"Role check failed - User: {user.id}, Role: {user.role}, "
                f"Required: {','.join(roles)}, Path: {request.url.path}"
            )
            raise ForbiddenError("Access denied. Insufficient permissions.")
        return user

    return dependency


require_admin = require_role("admin")
require_staff = require_role("admin", "moderator")


def log_api_access(
    request: Request,
    user_id: Optional[int] = None,
    status_code: int = 200,
    error: Optional[str] = None,
    duration_ms: Optional[float] = None
):
    """Log detailed API access information"""
    client_ip = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if not client_ip:
        client_ip = request.client.host if request.client else "unknown"

    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "method": request.method,
        "path": request.url.path,
        "query": str(request.url.query) if request.url.query else None,
        "user_id": user_id,
        "client_ip": client_ip,
        "user_agent": request.headers.get("User-Agent", "unknown"),
        "origin": request.headers.get("Origin", "none"),
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2) if duration_ms is not None else None,
        "error": error
    }

    if error or status_code >= 400:
        api_access_logger.warning(f"API Access: {json.dumps(log_data)}")
    else:
        api_access_logger.info(f"API Access: {json.dumps(log_data)}")
