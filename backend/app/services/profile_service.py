"""Profile service - viewer profiles, capacity limits, activation, history and my list

Invariants kept here:
- an account never holds more profiles than its ceiling
- an account with profiles has exactly one active profile, and
  ``User.active_profile_id`` points at it
- the last profile of an account cannot be deleted

Every operation that changes which profile is active locks the owning
account row first and flips ``is_active`` for all of the account's profiles
in one UPDATE, inside the same transaction that moves ``active_profile_id``.
"""
import logging
import math
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    ConflictError, ForbiddenError, NotFoundError, ServiceError, UnauthorizedError, ValidationError
)
from app.core.metrics import profile_operations_counter
from app.models.base import isoformat, utcnow
from app.models.profile import (
    Profile, ProfileListItem, ProfileWatchHistoryEntry,
    PROFILE_TYPES, MAX_WATCH_HISTORY, CONTINUE_WATCHING_LIMIT, COMPLETION_THRESHOLD,
    default_preferences, get_default_avatars, get_max_profiles
)
from app.models.user import User
from app.utils.pin import PIN_MIN_LENGTH, encode_pin, verify_pin

logger = logging.getLogger(__name__)
profile_logger = logging.getLogger("profiles")

MAX_NAME_LENGTH = 50


@contextmanager
def _track(operation: str):
    """Count an operation as success or rejected"""
    try:
        yield
    except ServiceError:
        profile_operations_counter.labels(operation=operation, status="rejected").inc()
        raise
    profile_operations_counter.labels(operation=operation, status="success").inc()


# ---- Lookups ----

def get_profile_ceiling(user: User) -> int:
    """Max profiles: the account override if set, else derived from its plan"""
    if user.max_profiles:
        return user.max_profiles
    return get_max_profiles(user.subscription_plan)


def count_profiles(user_id: int, db: Session) -> int:
    return db.query(func.count(Profile.id)).filter(Profile.user_id == user_id).scalar() or 0


def get_owned_profile(user_id: int, profile_id: int, db: Session) -> Profile:
    """Fetch a profile that belongs to the account

    Raises:
        NotFoundError: If no such profile exists for this account
    """
    profile = db.query(Profile).filter(Profile.id == profile_id, Profile.user_id == user_id).first()
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


def list_profiles(user_id: int, db: Session) -> List[Profile]:
    return db.query(Profile).filter(Profile.user_id == user_id).order_by(
        Profile.created_at.asc(), Profile.id.asc()
    ).all()


def get_active_profile(user_id: int, db: Session) -> Profile:
    profile = db.query(Profile).filter(Profile.user_id == user_id, Profile.is_active.is_(True)).first()
    if not profile:
        raise NotFoundError("No active profile found")
    return profile


def get_profile_limits(user: User, db: Session) -> Dict[str, Any]:
    current_count = count_profiles(user.id, db)
    max_allowed = get_profile_ceiling(user)
    return {
        "currentCount": current_count,
        "maxAllowed": max_allowed,
        "canCreate": current_count < max_allowed,
        "remaining": max(0, max_allowed - current_count),
    }


# ---- Serialization ----

def serialize_profile(profile: Profile) -> Dict[str, Any]:
    """Profile summary (never includes the PIN)"""
    return {
        "id": profile.id,
        "name": profile.name,
        "avatar": profile.avatar,
        "type": profile.type,
        "isActive": profile.is_active,
        "preferences": profile.preferences or {},
        "hasPin": profile.has_pin,
        "watchHistoryCount": profile.watch_history_count,
        "myListCount": profile.my_list_count,
        "totalWatchTime": profile.total_watch_time,
        "completionRate": profile.completion_rate,
        "lastActivityAt": isoformat(profile.last_activity_at),
        "createdAt": isoformat(profile.created_at),
        "updatedAt": isoformat(profile.updated_at),
    }


def serialize_history_entry(entry: ProfileWatchHistoryEntry) -> Dict[str, Any]:
    return {
        "contentId": entry.content_id,
        "contentType": entry.content_type,
        "title": entry.title,
        "posterPath": entry.poster_path,
        "backdropPath": entry.backdrop_path,
        "progress": entry.progress,
        "duration": entry.duration,
        "completed": entry.completed,
        "watchedAt": isoformat(entry.watched_at),
        "season": entry.season,
        "episode": entry.episode,
    }


def serialize_list_item(item: ProfileListItem) -> Dict[str, Any]:
    return {
        "contentId": item.content_id,
        "contentType": item.content_type,
        "title": item.title,
        "posterPath": item.poster_path,
        "backdropPath": item.backdrop_path,
        "overview": item.overview,
        "voteAverage": item.vote_average,
        "releaseDate": item.release_date,
        "addedAt": isoformat(item.added_at),
    }


def _pagination(total: int, page: int, limit: int) -> Dict[str, int]:
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalItems": total,
        "itemsPerPage": limit,
    }


# ---- Validation ----

def clean_profile_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Profile name is required")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Profile name must be less than {MAX_NAME_LENGTH} characters")
    return name


def _check_type(profile_type: str):
    if profile_type not in PROFILE_TYPES:
        raise ValidationError("Profile type must be 'adult' or 'kids'")


def _name_taken(user_id: int, name: str, db: Session, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Profile.id).filter(Profile.user_id == user_id, Profile.name == name)
    if exclude_id is not None:
        query = query.filter(Profile.id != exclude_id)
    return query.first() is not None


# ---- Activation ----

def _lock_account(user_id: int, db: Session) -> User:
    """SELECT ... FOR UPDATE on the owning account (ignored by SQLite)"""
    user = db.query(User).filter(User.id == user_id).with_for_update().first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _activate(user: User, profile_id: int, db: Session):
    """Make ``profile_id`` the only active profile of the account, in one statement"""
    db.query(Profile).filter(Profile.user_id == user.id).update(
        {Profile.is_active: Profile.id == profile_id},
        synchronize_session="fetch"
    )
    user.active_profile_id = profile_id


# ---- Profile lifecycle ----

def create_profile(
    user_id: int,
    name,
    profile_type: str = "adult",
    avatar: Optional[str] = None,
    preferences: Optional[Dict[str, Any]] = None,
    pin: Optional[str] = None,
    db: Session = None
) -> Profile:
    """Create a profile under the account

    The account's first profile becomes its active profile.

    Raises:
        ValidationError: Bad name, type or PIN
        ConflictError: Name already used by another profile of this account
        ForbiddenError: Account is at its profile ceiling (carries currentCount/maxAllowed)
    """
    with _track("create"):
        name = clean_profile_name(name)
        profile_type = profile_type or "adult"
        _check_type(profile_type)
        # Short PINs are dropped on create; longer than 6 is still rejected
        if pin and len(pin) < PIN_MIN_LENGTH:
            pin = None
        encoded_pin = encode_pin(pin) if pin else None

        try:
            user = _lock_account(user_id, db)

            if _name_taken(user_id, name, db):
                raise ConflictError("A profile with this name already exists")

            existing_count = count_profiles(user_id, db)
            max_profiles = get_profile_ceiling(user)
            if existing_count >= max_profiles:
                raise ForbiddenError(
                    f"You have reached the maximum limit of {max_profiles} profiles for your plan",
                    currentCount=existing_count,
                    maxAllowed=max_profiles
                )

            is_first = existing_count == 0
            profile = Profile(
                user_id=user_id,
                name=name,
                type=profile_type,
                avatar=avatar or get_default_avatars(profile_type)[0],
                is_active=is_first,
                preferences={**default_preferences(profile_type), **(preferences or {})},
                pin=encoded_pin,
                last_activity_at=utcnow(),
            )
            db.add(profile)
            db.flush()
            if is_first:
                user.active_profile_id = profile.id

            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("A profile with this name already exists")
        except ServiceError:
            db.rollback()
            raise

        db.refresh(profile)
        profile_logger.info(f"Created profile {profile.id} ({profile.type}) for user {user_id}")
        return profile


def update_profile(user_id: int, profile_id: int, fields: Dict[str, Any], db: Session) -> Profile:
    """Apply a partial update

    ``fields`` holds only the keys the client sent. A type change to kids
    lowers the maturity rating to 7+ when it was unset or 18+; preferences are
    shallow-merged; a null or empty ``pin`` clears it.

    Raises:
        NotFoundError, ValidationError, ConflictError
    """
    with _track("update"):
        profile = get_owned_profile(user_id, profile_id, db)

        if "name" in fields:
            name = clean_profile_name(fields["name"])
            if _name_taken(user_id, name, db, exclude_id=profile.id):
                raise ConflictError("Another profile with this name already exists")
            profile.name = name

        if "avatar" in fields:
            profile.avatar = fields["avatar"] or get_default_avatars(fields.get("type") or profile.type)[0]

        preferences = dict(profile.preferences or {})
        if fields.get("type") is not None:
            _check_type(fields["type"])
            profile.type = fields["type"]
            if fields["type"] == "kids" and preferences.get("maturityRating") in (None, "18+"):
                preferences["maturityRating"] = "7+"

        if fields.get("preferences") is not None:
            preferences.update(fields["preferences"])
        profile.preferences = preferences

        if "pin" in fields:
            profile.pin = encode_pin(fields["pin"]) if fields["pin"] else None

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Another profile with this name already exists")
        db.refresh(profile)
        return profile


def delete_profile(user_id: int, profile_id: int, db: Session) -> None:
    """Delete a profile, promoting the earliest-created remaining one if it was active

    Raises:
        ForbiddenError: If it is the account's only profile
        NotFoundError: If the profile does not belong to the account
    """
    with _track("delete"):
        try:
            user = _lock_account(user_id, db)
            if count_profiles(user_id, db) <= 1:
                raise ForbiddenError("Cannot delete the last profile. You must have at least one profile.")

            profile = get_owned_profile(user_id, profile_id, db)
            if profile.is_active or user.active_profile_id == profile.id:
                successor = db.query(Profile).filter(
                    Profile.user_id == user_id, Profile.id != profile.id
                ).order_by(Profile.created_at.asc(), Profile.id.asc()).first()
                _activate(user, successor.id, db)
                profile_logger.info(f"Promoted profile {successor.id} after deleting active profile {profile.id}")

            db.delete(profile)
            db.commit()
        except ServiceError:
            db.rollback()
            raise

        profile_logger.info(f"Deleted profile {profile_id} for user {user_id}")


def switch_active_profile(user_id: int, profile_id: int, pin: Optional[str] = None, db: Session = None) -> Profile:
    """Make a profile the account's active one

    Raises:
        NotFoundError: If the profile does not belong to the account
        UnauthorizedError: If the profile has a PIN and ``pin`` does not match
    """
    with _track("switch"):
        try:
            user = _lock_account(user_id, db)
            profile = get_owned_profile(user_id, profile_id, db)
            if profile.pin and not verify_pin(pin, profile.pin):
                raise UnauthorizedError("Invalid PIN")

            _activate(user, profile.id, db)
            profile.last_activity_at = utcnow()
            db.commit()
        except ServiceError:
            db.rollback()
            raise

        db.refresh(profile)
        profile_logger.info(f"User {user_id} switched to profile {profile.id}")
        return profile


# ---- Watch history ----

def is_completed(progress: float, duration: float) -> bool:
    return progress >= duration * COMPLETION_THRESHOLD


def add_to_watch_history(user_id: int, profile_id: int, data: Dict[str, Any], db: Session) -> ProfileWatchHistoryEntry:
    """Upsert an entry keyed by (contentId, contentType)

    Recomputes total watch time from all entries, then keeps only the
    MAX_WATCH_HISTORY most recent.
    """
    for key in ("contentId", "contentType", "title"):
        if not data.get(key):
            raise ValidationError("contentId, contentType, and title are required")

    profile = get_owned_profile(user_id, profile_id, db)
    progress = float(data.get("progress") or 0)
    duration = float(data.get("duration") or 0)
    completed = is_completed(progress, duration)
    now = utcnow()

    entry = db.query(ProfileWatchHistoryEntry).filter(
        ProfileWatchHistoryEntry.profile_id == profile.id,
        ProfileWatchHistoryEntry.content_id == data["contentId"],
        ProfileWatchHistoryEntry.content_type == data["contentType"],
    ).first()
    if entry:
        entry.progress = progress
        entry.duration = duration
        entry.completed = completed
        entry.watched_at = now
        if data.get("season"):
            entry.season = data["season"]
        if data.get("episode"):
            entry.episode = data["episode"]
    else:
        entry = ProfileWatchHistoryEntry(
            profile_id=profile.id,
            content_id=data["contentId"],
            content_type=data["contentType"],
            title=data["title"],
            poster_path=data.get("posterPath"),
            backdrop_path=data.get("backdropPath"),
            progress=progress,
            duration=duration,
            completed=completed,
            watched_at=now,
            season=data.get("season"),
            episode=data.get("episode"),
        )
        db.add(entry)
    db.flush()

    total_progress = db.query(func.coalesce(func.sum(ProfileWatchHistoryEntry.progress), 0)).filter(
        ProfileWatchHistoryEntry.profile_id == profile.id
    ).scalar()
    profile.total_watch_time = int(math.floor(total_progress / 60))

    stale_ids = [row.id for row in db.query(ProfileWatchHistoryEntry.id).filter(
        ProfileWatchHistoryEntry.profile_id == profile.id
    ).order_by(
        ProfileWatchHistoryEntry.watched_at.desc(), ProfileWatchHistoryEntry.id.desc()
    ).offset(MAX_WATCH_HISTORY).all()]
    if stale_ids:
        db.query(ProfileWatchHistoryEntry).filter(
            ProfileWatchHistoryEntry.id.in_(stale_ids)
        ).delete(synchronize_session=False)

    profile.last_activity_at = now
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Watch history entry was modified concurrently, retry")
    db.refresh(entry)
    return entry


def get_watch_history(user_id: int, profile_id: int, limit: int = 20, page: int = 1, db: Session = None) -> Dict[str, Any]:
    profile = get_owned_profile(user_id, profile_id, db)
    query = db.query(ProfileWatchHistoryEntry).filter(ProfileWatchHistoryEntry.profile_id == profile.id)
    total = query.count()
    entries = query.order_by(
        ProfileWatchHistoryEntry.watched_at.desc(), ProfileWatchHistoryEntry.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()
    return {
        "profileId": profile.id,
        "history": [serialize_history_entry(e) for e in entries],
        "pagination": _pagination(total, page, limit),
    }


def clear_watch_history(user_id: int, profile_id: int, db: Session) -> None:
    profile = get_owned_profile(user_id, profile_id, db)
    db.query(ProfileWatchHistoryEntry).filter(
        ProfileWatchHistoryEntry.profile_id == profile.id
    ).delete(synchronize_session=False)
    profile.total_watch_time = 0
    profile.last_activity_at = utcnow()
    db.commit()


def get_continue_watching(user_id: int, profile_id: int, db: Session) -> List[ProfileWatchHistoryEntry]:
    """Started but unfinished entries, newest first"""
    profile = get_owned_profile(user_id, profile_id, db)
    return db.query(ProfileWatchHistoryEntry).filter(
        ProfileWatchHistoryEntry.profile_id == profile.id,
        ProfileWatchHistoryEntry.completed.is_(False),
        ProfileWatchHistoryEntry.progress > 0,
    ).order_by(
        ProfileWatchHistoryEntry.watched_at.desc(), ProfileWatchHistoryEntry.id.desc()
    ).limit(CONTINUE_WATCHING_LIMIT).all()


# ---- My list ----

def add_to_my_list(user_id: int, profile_id: int, data: Dict[str, Any], db: Session) -> ProfileListItem:
    """Raises ConflictError if contentId is already in the profile's list"""
    for key in ("contentId", "contentType", "title"):
        if not data.get(key):
            raise ValidationError("contentId, contentType, and title are required")

    profile = get_owned_profile(user_id, profile_id, db)
    exists = db.query(ProfileListItem.id).filter(
        ProfileListItem.profile_id == profile.id,
        ProfileListItem.content_id == data["contentId"],
    ).first()
    if exists:
        raise ConflictError("Content already in list")

    item = ProfileListItem(
        profile_id=profile.id,
        content_id=data["contentId"],
        content_type=data["contentType"],
        title=data["title"],
        poster_path=data.get("posterPath"),
        backdrop_path=data.get("backdropPath"),
        overview=data.get("overview"),
        vote_average=data.get("voteAverage"),
        release_date=data.get("releaseDate"),
        added_at=utcnow(),
    )
    db.add(item)
    profile.last_activity_at = utcnow()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Content already in list")
    db.refresh(item)
    return item


def remove_from_my_list(user_id: int, profile_id: int, content_id: str, db: Session) -> None:
    """Raises NotFoundError if contentId is not in the profile's list"""
    profile = get_owned_profile(user_id, profile_id, db)
    removed = db.query(ProfileListItem).filter(
        ProfileListItem.profile_id == profile.id,
        ProfileListItem.content_id == content_id,
    ).delete(synchronize_session=False)
    if not removed:
        raise NotFoundError("Content not found in list")
    profile.last_activity_at = utcnow()
    db.commit()


def get_my_list(user_id: int, profile_id: int, limit: int = 50, page: int = 1, db: Session = None) -> Dict[str, Any]:
    profile = get_owned_profile(user_id, profile_id, db)
    query = db.query(ProfileListItem).filter(ProfileListItem.profile_id == profile.id)
    total = query.count()
    items = query.order_by(
        ProfileListItem.added_at.desc(), ProfileListItem.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()
    return {
        "profileId": profile.id,
        "myList": [serialize_list_item(i) for i in items],
        "pagination": _pagination(total, page, limit),
    }


def is_in_my_list(user_id: int, profile_id: int, content_id: str, db: Session) -> bool:
    profile = get_owned_profile(user_id, profile_id, db)
    return db.query(ProfileListItem.id).filter(
        ProfileListItem.profile_id == profile.id,
        ProfileListItem.content_id == content_id,
    ).first() is not None
