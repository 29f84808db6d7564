"""Library service - account-level "my list" and watch history"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.base import isoformat, utcnow
from app.models.library import AccountListItem, WatchHistoryItem, MAX_ACCOUNT_HISTORY

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 120


def serialize_list_item(item: AccountListItem) -> Dict[str, Any]:
    return {
        "movieId": item.movie_id,
        "title": item.title,
        "posterPath": item.poster_path,
        "mediaType": item.media_type,
        "addedAt": isoformat(item.added_at),
    }


def serialize_history_item(item: WatchHistoryItem) -> Dict[str, Any]:
    return {
        "movieId": item.movie_id,
        "title": item.title,
        "posterPath": item.poster_path,
        "genres": item.genres or [],
        "duration": item.duration,
        "voteAverage": item.vote_average,
        "watchedAt": isoformat(item.watched_at),
    }


# ---- My list ----

def get_my_list(user_id: int, db: Session) -> List[AccountListItem]:
    return db.query(AccountListItem).filter(AccountListItem.user_id == user_id).order_by(
        AccountListItem.added_at.desc(), AccountListItem.id.desc()
    ).all()


def add_to_my_list(
    user_id: int,
    movie_id: str,
    title: str,
    poster_path: Optional[str] = None,
    media_type: Optional[str] = None,
    db: Session = None
) -> AccountListItem:
    """Raises ConflictError if the movie is already in the list"""
    if not movie_id or not title:
        raise ValidationError("Movie ID and title are required")
    if is_in_my_list(user_id, movie_id, db):
        raise ConflictError("Movie already in list")

    item = AccountListItem(
        user_id=user_id,
        movie_id=movie_id,
        title=title,
        poster_path=poster_path,
        media_type=media_type or "movie",
        added_at=utcnow(),
    )
    db.add(item)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Movie already in list")
    db.refresh(item)
    return item


def remove_from_my_list(user_id: int, movie_id: str, db: Session) -> None:
    """Raises NotFoundError if the movie is not in the list"""
    removed = db.query(AccountListItem).filter(
        AccountListItem.user_id == user_id,
        AccountListItem.movie_id == movie_id,
    ).delete(synchronize_session=False)
    if not removed:
        raise NotFoundError("Movie not found in list")
    db.commit()


def is_in_my_list(user_id: int, movie_id: str, db: Session) -> bool:
    return db.query(AccountListItem.id).filter(
        AccountListItem.user_id == user_id,
        AccountListItem.movie_id == movie_id,
    ).first() is not None


def clear_my_list(user_id: int, db: Session) -> None:
    db.query(AccountListItem).filter(AccountListItem.user_id == user_id).delete(synchronize_session=False)
    db.commit()


# ---- Watch history ----

def get_watch_history(user_id: int, db: Session) -> List[WatchHistoryItem]:
    return db.query(WatchHistoryItem).filter(WatchHistoryItem.user_id == user_id).order_by(
        WatchHistoryItem.watched_at.desc(), WatchHistoryItem.id.desc()
    ).all()


def add_to_watch_history(user_id: int, data: Dict[str, Any], db: Session) -> List[WatchHistoryItem]:
    """Move the movie to the top of the history, keeping the newest MAX_ACCOUNT_HISTORY"""
    if not data.get("movieId") or not data.get("title"):
        raise ValidationError("Movie ID and title are required")

    db.query(WatchHistoryItem).filter(
        WatchHistoryItem.user_id == user_id,
        WatchHistoryItem.movie_id == data["movieId"],
    ).delete(synchronize_session=False)

    db.add(WatchHistoryItem(
        user_id=user_id,
        movie_id=data["movieId"],
        title=data["title"],
        poster_path=data.get("posterPath"),
        genres=data.get("genres") or [],
        duration=data.get("duration") or DEFAULT_DURATION,
        vote_average=data.get("voteAverage"),
        watched_at=utcnow(),
    ))
    db.flush()

    stale_ids = [row.id for row in db.query(WatchHistoryItem.id).filter(
        WatchHistoryItem.user_id == user_id
    ).order_by(
        WatchHistoryItem.watched_at.desc(), WatchHistoryItem.id.desc()
    ).offset(MAX_ACCOUNT_HISTORY).all()]
    if stale_ids:
        db.query(WatchHistoryItem).filter(WatchHistoryItem.id.in_(stale_ids)).delete(synchronize_session=False)

    db.commit()
    return get_watch_history(user_id, db)


def clear_watch_history(user_id: int, db: Session) -> None:
    db.query(WatchHistoryItem).filter(WatchHistoryItem.user_id == user_id).delete(synchronize_session=False)
    db.commit()
