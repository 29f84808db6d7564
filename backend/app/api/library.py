"""Account-level my list and watch history routes"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import get_current_user, require_staff
from app.db.session import get_db
from app.models.user import User
from app.schemas.library import MyListAddRequest, WatchHistoryAddRequest
from app.services import library_service
from app.services.account_service import get_user

my_list_router = APIRouter(prefix="/api/mylist", tags=["mylist"])
watch_history_router = APIRouter(prefix="/api/watch-history", tags=["watch-history"])
logger = logging.getLogger(__name__)


def _history_payload(items):
    history = [library_service.serialize_history_item(i) for i in items]
    return {"watchHistory": history, "total": len(history)}


# ---- My list ----

@my_list_router.get("")
def get_my_list(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    items = [library_service.serialize_list_item(i) for i in library_service.get_my_list(user.id, db)]
    return {"success": True, "data": {"myList": items, "total": len(items)}}


@my_list_router.post("", status_code=201)
def add_to_my_list(request_data: MyListAddRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    item = library_service.add_to_my_list(
        user.id,
        request_data.movie_id,
        request_data.title,
        poster_path=request_data.poster_path,
        media_type=request_data.media_type,
        db=db
    )
    return {"success": True, "message": "Added to My List", "data": library_service.serialize_list_item(item)}


@my_list_router.get("/check/{movie_id}")
def check_my_list(movie_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": {"inList": library_service.is_in_my_list(user.id, movie_id, db)}}


@my_list_router.delete("")
def clear_my_list(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    library_service.clear_my_list(user.id, db)
    return {"success": True, "message": "My List cleared successfully"}


@my_list_router.delete("/{movie_id}")
def remove_from_my_list(movie_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    library_service.remove_from_my_list(user.id, movie_id, db)
    return {"success": True, "message": "Removed from My List"}


# ---- Watch history ----

@watch_history_router.get("")
def get_watch_history(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": _history_payload(library_service.get_watch_history(user.id, db))}


@watch_history_router.post("")
def add_watch_history(
    request_data: WatchHistoryAddRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    items = library_service.add_to_watch_history(user.id, request_data.to_payload(), db)
    return {"success": True, "message": "Added to watch history", "data": _history_payload(items)}


@watch_history_router.delete("")
def clear_watch_history(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    library_service.clear_watch_history(user.id, db)
    return {"success": True, "message": "Watch history cleared successfully", "data": {"watchHistory": [], "total": 0}}


@watch_history_router.get("/user/{user_id}")
def get_user_watch_history(user_id: int, staff: User = Depends(require_staff), db: Session = Depends(get_db)):
    target = get_user(user_id, db)
    payload = _history_payload(library_service.get_watch_history(target.id, db))
    payload["userEmail"] = target.email
    return {"success": True, "data": payload}
