"""Auth API routes"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.auth import LoginRequest, RegisterRequest, RefreshRequest, GoogleLoginRequest
from app.services.auth_service import login_user, register_user, google_login, refresh_session
from app.services.identity_service import FirebaseIdentityProvider, get_identity_provider

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login")
def login(
    request_data: LoginRequest,
    provider: FirebaseIdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    """Sign in with email and password"""
    return {"success": True, "data": login_user(request_data.email, request_data.password, provider, db)}


@router.post("/register", status_code=201)
def register(
    request_data: RegisterRequest,
    provider: FirebaseIdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    data = register_user(request_data.email, request_data.password, request_data.display_name, provider, db)
    return {"success": True, "data": data}


@router.post("/google-login")
def google_login_endpoint(
    request_data: GoogleLoginRequest,
    provider: FirebaseIdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": google_login(request_data.id_token, provider, db)}


@router.post("/refresh")
def refresh(request_data: RefreshRequest, provider: FirebaseIdentityProvider = Depends(get_identity_provider)):
    return {"success": True, "data": refresh_session(request_data.refresh_token, provider)}


@router.post("/logout")
def logout():
    """Tokens live on the client; nothing to revoke server-side"""
    return {"success": True, "message": "Logged out successfully"}
