"""Profile API routes"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models.profile import get_default_avatars
from app.models.user import User
from app.schemas.profiles import (
    CreateProfileRequest, UpdateProfileRequest, SwitchProfileRequest,
    WatchHistoryEntryRequest, MyListItemRequest
)
from app.services.profile_service import (
    list_profiles, get_owned_profile, get_active_profile, get_profile_limits,
    create_profile, update_profile, delete_profile, switch_active_profile,
    add_to_watch_history, get_watch_history, clear_watch_history, get_continue_watching,
    add_to_my_list, remove_from_my_list, get_my_list, is_in_my_list,
    serialize_profile, serialize_history_entry
)

router = APIRouter(prefix="/api/profiles", tags=["profiles"])
logger = logging.getLogger(__name__)


@router.get("")
def get_profiles(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """List the account's profiles, oldest first"""
    profiles = list_profiles(user.id, db)
    return {
        "success": True,
        "count": len(profiles),
        "profiles": [serialize_profile(p) for p in profiles]
    }


@router.post("", status_code=201)
def create_profile_endpoint(
    request_data: CreateProfileRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    profile = create_profile(
        user.id,
        request_data.name,
        profile_type=request_data.type,
        avatar=request_data.avatar,
        preferences=request_data.preferences.to_payload() if request_data.preferences else None,
        pin=request_data.pin,
        db=db
    )
    return {
        "success": True,
        "message": "Profile created successfully",
        "profile": serialize_profile(profile)
    }


@router.get("/limits")
def get_limits(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, **get_profile_limits(user, db)}


@router.get("/avatars")
def get_avatars(type: str = Query("adult"), user: User = Depends(get_current_user)):
    return {"success": True, "type": type, "avatars": get_default_avatars(type)}


@router.get("/active")
def get_active(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "profile": serialize_profile(get_active_profile(user.id, db))}


@router.get("/{profile_id}")
def get_profile(profile_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "profile": serialize_profile(get_owned_profile(user.id, profile_id, db))}


@router.put("/{profile_id}")
def update_profile_endpoint(
    profile_id: int,
    request_data: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    profile = update_profile(user.id, profile_id, request_data.to_payload(), db)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "profile": serialize_profile(profile)
    }


@router.delete("/{profile_id}")
def delete_profile_endpoint(profile_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    delete_profile(user.id, profile_id, db)
    return {"success": True, "message": "Profile deleted successfully"}


@router.post("/{profile_id}/switch")
def switch_profile(
    profile_id: int,
    request_data: Optional[SwitchProfileRequest] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Make a profile active; PIN-protected profiles need the PIN"""
    pin = request_data.pin if request_data else None
    profile = switch_active_profile(user.id, profile_id, pin=pin, db=db)
    return {
        "success": True,
        "message": "Profile switched successfully",
        "profile": serialize_profile(profile)
    }


# ---- Watch history ----

@router.get("/{profile_id}/history")
def get_history(
    profile_id: int,
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"success": True, **get_watch_history(user.id, profile_id, limit=limit, page=page, db=db)}


@router.post("/{profile_id}/history")
def add_history(
    profile_id: int,
    request_data: WatchHistoryEntryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    entry = add_to_watch_history(user.id, profile_id, request_data.to_payload(), db)
    return {
        "success": True,
        "message": "Added to watch history",
        "completed": entry.completed,
        "entry": serialize_history_entry(entry)
    }


@router.delete("/{profile_id}/history")
def clear_history(profile_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    clear_watch_history(user.id, profile_id, db)
    return {"success": True, "message": "Watch history cleared"}


@router.get("/{profile_id}/continue-watching")
def continue_watching(profile_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    items = [serialize_history_entry(e) for e in get_continue_watching(user.id, profile_id, db)]
    return {"success": True, "profileId": profile_id, "items": items, "count": len(items)}


# ---- My list ----

@router.get("/{profile_id}/mylist")
def get_profile_list(
    profile_id: int,
    limit: int = Query(50, ge=1, le=200),
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"success": True, **get_my_list(user.id, profile_id, limit=limit, page=page, db=db)}


@router.post("/{profile_id}/mylist", status_code=201)
def add_profile_list_item(
    profile_id: int,
    request_data: MyListItemRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    add_to_my_list(user.id, profile_id, request_data.to_payload(), db)
    return {"success": True, "message": "Added to My List"}


@router.get("/{profile_id}/mylist/check/{content_id}")
def check_profile_list_item(
    profile_id: int,
    content_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"success": True, "inList": is_in_my_list(user.id, profile_id, content_id, db)}


@router.delete("/{profile_id}/mylist/{content_id}")
def remove_profile_list_item(
    profile_id: int,
    content_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    remove_from_my_list(user.id, profile_id, content_id, db)
    return {"success": True, "message": "Removed from My List"}
