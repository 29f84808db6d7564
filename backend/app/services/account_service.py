"""Account service - identity sync, account profile, subscription and user administration"""
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.metrics import accounts_created_counter
from app.models.base import as_utc, isoformat, utcnow
from app.models.user import User
from app.services.identity_service import FirebaseIdentityProvider, IdentityProviderError
from app.services.profile_service import get_profile_ceiling

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")

ROLES = ("user", "admin", "moderator")
TRIAL_DAYS = 7


def is_permanent_admin(email: Optional[str]) -> bool:
    """True for emails on the ADMIN_EMAILS allow-list; these always act as admin"""
    if not email:
        return False
    return email.strip().lower() in settings.admin_emails


def sync_account(
    uid: str,
    email: Optional[str],
    display_name: Optional[str] = None,
    photo_url: Optional[str] = None,
    email_verified: bool = False,
    db: Session = None
) -> User:
    """Find or create the account for a verified identity

    Looks up by provider uid first, then by email (re-linking the uid when the
    provider has issued a new one), and creates the account otherwise.
    Denormalized identity fields and ``last_login_at`` are refreshed each call.

    Raises:
        ValidationError: If uid or email is missing
        ConflictError: If a concurrent sync created the same account first
    """
    email = (email or "").strip().lower()
    if not uid:
        raise ValidationError("Identity subject is required")
    if not email:
        raise ValidationError("Email is required")

    user = db.query(User).filter(User.firebase_uid == uid).first()
    if not user:
        user = db.query(User).filter(User.email == email).first()
        if user:
            logger.info(f"Re-linking account {user.id} to new identity uid {uid}")
            user.firebase_uid = uid

    created = False
    if not user:
        user = User(
            firebase_uid=uid,
            email=email,
            display_name=display_name or email.split("@")[0] or "User",
            photo_url=photo_url,
            is_email_verified=bool(email_verified),
            role="user",
        )
        db.add(user)
        created = True
    else:
        user.email = email
        if display_name:
            user.display_name = display_name
        if photo_url:
            user.photo_url = photo_url
        user.is_email_verified = bool(email_verified)

    if is_permanent_admin(email) and user.role != "admin":
        security_logger.info(f"Permanent admin {email} coerced to admin role")
        user.role = "admin"

    user.last_login_at = utcnow()

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Account sync conflict for uid {uid}")
        raise ConflictError("Account already exists for this identity")

    db.refresh(user)
    if created:
        accounts_created_counter.inc()
        logger.info(f"Created account {user.id} for {email}")
    return user


def serialize_subscription(user: User) -> Dict[str, Any]:
    return {
        "plan": user.subscription_plan,
        "status": user.subscription_status,
        "billingCycle": user.billing_cycle,
        "startDate": isoformat(user.subscription_start),
        "endDate": isoformat(user.subscription_end),
        "trialStart": isoformat(user.trial_start),
        "trialEnd": isoformat(user.trial_end),
    }


def serialize_user(user: User) -> Dict[str, Any]:
    """Public view of an account"""
    return {
        "id": user.id,
        "firebaseUid": user.firebase_uid,
        "email": user.email,
        "displayName": user.display_name,
        "photoURL": user.photo_url,
        "phoneNumber": user.phone_number,
        "role": user.role,
        "isActive": user.is_active,
        "isEmailVerified": user.is_email_verified,
        "profile": {
            "firstName": user.first_name,
            "lastName": user.last_name,
            "bio": user.bio,
            "dateOfBirth": isoformat(user.date_of_birth),
            "address": user.address or {},
        },
        "fullName": user.full_name,
        "subscription": serialize_subscription(user),
        "maxProfiles": get_profile_ceiling(user),
        "activeProfileId": user.active_profile_id,
        "myListCount": len(user.list_items or []),
        "lastLoginAt": isoformat(user.last_login_at),
        "createdAt": isoformat(user.created_at),
        "updatedAt": isoformat(user.updated_at),
    }


def update_account_details(
    user: User,
    fields: Dict[str, Any],
    provider: Optional[FirebaseIdentityProvider],
    db: Session
) -> User:
    """Update personal details; empty values leave the stored value untouched

    ``address`` is shallow-merged. ``displayName``/``photoURL`` are also pushed
    to the identity provider.
    """
    profile = fields.get("profile") or {}
    if profile.get("firstName"):
        user.first_name = profile["firstName"]
    if profile.get("lastName"):
        user.last_name = profile["lastName"]
    if profile.get("bio"):
        user.bio = profile["bio"]
    if profile.get("dateOfBirth"):
        user.date_of_birth = profile["dateOfBirth"]
    if profile.get("address"):
        user.address = {**(user.address or {}), **profile["address"]}

    display_name = fields.get("displayName")
    photo_url = fields.get("photoURL")
    if display_name:
        user.display_name = display_name
    if photo_url:
        user.photo_url = photo_url
    if fields.get("phoneNumber"):
        user.phone_number = fields["phoneNumber"]

    db.commit()
    db.refresh(user)

    if provider is not None and (display_name or photo_url):
        provider.update_account(user.firebase_uid, display_name=display_name, photo_url=photo_url)

    return user


def update_subscription(
    user: User,
    plan: Optional[str] = None,
    billing_cycle: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = None
) -> User:
    if plan:
        user.subscription_plan = plan
    if billing_cycle:
        user.billing_cycle = billing_cycle
    if status:
        user.subscription_status = status
    if start_date:
        user.subscription_start = start_date
    if end_date:
        user.subscription_end = end_date
    db.commit()
    db.refresh(user)
    logger.info(f"Subscription updated for user {user.id}: plan={user.subscription_plan}, status={user.subscription_status}")
    return user


def start_trial(user: User, db: Session) -> User:
    """Start a 7-day trial

    Raises:
        ValidationError: If a trial is still running
    """
    now = utcnow()
    trial_end = as_utc(user.trial_end)
    if user.subscription_status == "trial" and trial_end and trial_end > now:
        raise ValidationError("Trial already active")

    user.subscription_plan = "trial"
    user.subscription_status = "trial"
    user.billing_cycle = "monthly"
    user.trial_start = now
    user.trial_end = now + timedelta(days=TRIAL_DAYS)
    user.subscription_start = None
    user.subscription_end = None
    db.commit()
    db.refresh(user)
    logger.info(f"Trial started for user {user.id}")
    return user


def cancel_subscription(user: User, db: Session) -> User:
    user.subscription_status = "cancelled"
    db.commit()
    db.refresh(user)
    logger.info(f"Subscription cancelled for user {user.id}")
    return user


def _page(query, page: int, limit: int) -> Dict[str, Any]:
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "users": [serialize_user(u) for u in users],
        "totalPages": math.ceil(total / limit) if limit else 0,
        "currentPage": page,
        "total": total,
    }


def list_users(page: int = 1, limit: int = 10, role: Optional[str] = None, db: Session = None) -> Dict[str, Any]:
    """List accounts newest first, optionally filtered by role"""
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    return _page(query, page, limit)


def search_users(q: str, page: int = 1, limit: int = 10, db: Session = None) -> Dict[str, Any]:
    """Case-insensitive substring search over email, display name and first/last name

    Raises:
        ValidationError: If the query is empty
    """
    q = (q or "").strip()
    if not q:
        raise ValidationError("Search query is required")
    pattern = f"%{q}%"
    query = db.query(User).filter(or_(
        User.email.ilike(pattern),
        User.display_name.ilike(pattern),
        User.first_name.ilike(pattern),
        User.last_name.ilike(pattern),
    ))
    return _page(query, page, limit)


def get_user(user_id: int, db: Session) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user_role(
    user_id: int,
    role: str,
    provider: Optional[FirebaseIdentityProvider],
    db: Session
) -> User:
    """Change an account's role and mirror it as a custom claim

    Raises:
        ValidationError: If the role is unknown
        NotFoundError: If the account does not exist
        ForbiddenError: If the account is a permanent admin
    """
    if role not in ROLES:
        raise ValidationError("Invalid role")
    user = get_user(user_id, db)
    if is_permanent_admin(user.email):
        raise ForbiddenError("Cannot change role of permanent admin")

    user.role = role
    db.commit()
    db.refresh(user)
    security_logger.info(f"Role of user {user.id} changed to {role}")

    if provider is not None:
        provider.set_custom_claims(user.firebase_uid, {"role": role})
    return user


def delete_user(user_id: int, provider: Optional[FirebaseIdentityProvider], db: Session) -> None:
    """Revoke the identity-provider account, then delete the account and everything it owns

    Raises:
        NotFoundError: If the account does not exist
        ForbiddenError: If the account is a permanent admin
    """
    user = get_user(user_id, db)
    if is_permanent_admin(user.email):
        raise ForbiddenError("Cannot delete permanent admin")

    if provider is not None:
        try:
            provider.delete_account(user.firebase_uid)
        except IdentityProviderError as e:
            if "USER_NOT_FOUND" not in e.message:
                raise
            logger.info(f"Identity for user {user.id} already removed from provider")

    db.delete(user)
    db.commit()
    security_logger.info(f"Deleted user {user_id}")
