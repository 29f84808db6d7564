"""User (account) API routes"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import get_current_user, require_admin, require_staff
from app.db.session import get_db
from app.models.base import isoformat
from app.models.user import User
from app.schemas.library import WatchHistoryAddRequest
from app.schemas.users import UpdateMeRequest, SubscriptionUpdateRequest, RoleUpdateRequest
from app.services.account_service import (
    serialize_user, serialize_subscription, update_account_details, update_subscription,
    start_trial, cancel_subscription, list_users, search_users, get_user,
    update_user_role, delete_user, TRIAL_DAYS
)
from app.services.identity_service import FirebaseIdentityProvider, get_identity_provider
from app.services import library_service

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return {"success": True, "data": serialize_user(user)}


@router.put("/me")
def update_me(
    request_data: UpdateMeRequest,
    user: User = Depends(get_current_user),
    provider: FirebaseIdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    user = update_account_details(user, request_data.to_payload(), provider, db)
    return {"success": True, "message": "Profile updated successfully", "data": serialize_user(user)}


@router.post("/subscription")
def update_subscription_endpoint(
    request_data: SubscriptionUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = update_subscription(
        user,
        plan=request_data.plan,
        billing_cycle=request_data.billing_cycle,
        status=request_data.status,
        start_date=request_data.start_date,
        end_date=request_data.end_date,
        db=db
    )
    return {
        "success": True,
        "message": "Subscription updated successfully",
        "data": {"subscription": serialize_subscription(user)}
    }


@router.post("/trial")
def start_trial_endpoint(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = start_trial(user, db)
    return {
        "success": True,
        "message": "Trial started successfully",
        "data": {
            "subscription": serialize_subscription(user),
            "trialDays": TRIAL_DAYS,
            "trialEnd": isoformat(user.trial_end)
        }
    }


@router.post("/cancel")
def cancel_subscription_endpoint(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = cancel_subscription(user, db)
    return {
        "success": True,
        "message": "Subscription cancelled successfully",
        "data": {"subscription": serialize_subscription(user)}
    }


# ---- Account watch history (same store as /api/watch-history) ----

@router.get("/watch-history")
def get_watch_history(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    history = [library_service.serialize_history_item(i) for i in library_service.get_watch_history(user.id, db)]
    return {"success": True, "data": {"watchHistory": history, "total": len(history)}}


@router.post("/watch-history")
def add_watch_history(
    request_data: WatchHistoryAddRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    items = library_service.add_to_watch_history(user.id, request_data.to_payload(), db)
    history = [library_service.serialize_history_item(i) for i in items]
    return {"success": True, "message": "Added to watch history", "data": {"watchHistory": history, "total": len(history)}}


@router.delete("/watch-history")
def clear_watch_history(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    library_service.clear_watch_history(user.id, db)
    return {"success": True, "message": "Watch history cleared successfully", "data": {"watchHistory": [], "total": 0}}


# ---- Administration ----

@router.get("")
def get_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[str] = None,
    staff: User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": list_users(page=page, limit=limit, role=role, db=db)}


@router.get("/search")
def search_users_endpoint(
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    staff: User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": search_users(q, page=page, limit=limit, db=db)}


@router.get("/{user_id}")
def get_user_endpoint(user_id: int, staff: User = Depends(require_staff), db: Session = Depends(get_db)):
    return {"success": True, "data": serialize_user(get_user(user_id, db))}


@router.put("/{user_id}/role")
def update_role(
    user_id: int,
    request_data: RoleUpdateRequest,
    admin_user: User = Depends(require_admin),
    provider: FirebaseIdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    user = update_user_role(user_id, request_data.role, provider, db)
    logger.info(f"Admin {admin_user.id} set role of user {user_id} to {request_data.role}")
    return {"success": True, "message": "User role updated successfully", "data": serialize_user(user)}


@router.delete("/{user_id}")
def delete_user_endpoint(
    user_id: int,
    admin_user: User = Depends(require_admin),
    provider: FirebaseIdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    delete_user(user_id, provider, db)
    logger.info(f"Admin {admin_user.id} deleted user {user_id}")
    return {"success": True, "message": "User deleted successfully"}
