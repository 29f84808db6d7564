"""Testimonial service"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.base import isoformat
from app.models.testimonial import Testimonial

logger = logging.getLogger(__name__)

PUBLIC_LIMIT = 20
MAX_TEXT_LENGTH = 500
DEFAULT_ROLE = "MovieFlix User"


def avatar_url(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote(name, safe='')}&background=e50914&color=fff&size=150"


def serialize_testimonial(testimonial: Testimonial) -> Dict[str, Any]:
    return {
        "id": testimonial.id,
        "name": testimonial.name,
        "role": testimonial.role,
        "rating": testimonial.rating,
        "text": testimonial.text,
        "avatar": testimonial.avatar,
        "isApproved": testimonial.is_approved,
        "createdAt": isoformat(testimonial.created_at),
    }


def list_approved(db: Session) -> List[Testimonial]:
    return db.query(Testimonial).filter(Testimonial.is_approved.is_(True)).order_by(
        Testimonial.created_at.desc(), Testimonial.id.desc()
    ).limit(PUBLIC_LIMIT).all()


def list_all(db: Session) -> List[Testimonial]:
    return db.query(Testimonial).order_by(Testimonial.created_at.desc(), Testimonial.id.desc()).all()


def create_testimonial(
    name: str,
    rating: int,
    text: str,
    role: Optional[str] = None,
    db: Session = None
) -> Testimonial:
    """Create an auto-approved testimonial

    Raises:
        ValidationError: Missing fields, rating outside 1-5, or text over 500 characters
    """
    name = (name or "").strip()
    text = (text or "").strip()
    if not name or not rating or not text:
        raise ValidationError("Name, rating, and review text are required")
    if rating < 1 or rating > 5:
        raise ValidationError("Rating must be between 1 and 5")
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(f"Review text must be less than {MAX_TEXT_LENGTH} characters")

    testimonial = Testimonial(
        name=name,
        role=(role or "").strip() or DEFAULT_ROLE,
        rating=rating,
        text=text,
        avatar=avatar_url(name),
        is_approved=True,
    )
    db.add(testimonial)
    db.commit()
    db.refresh(testimonial)
    logger.info(f"Testimonial {testimonial.id} submitted by {name}")
    return testimonial


def approve_testimonial(testimonial_id: int, db: Session) -> Testimonial:
    testimonial = db.query(Testimonial).filter(Testimonial.id == testimonial_id).first()
    if not testimonial:
        raise NotFoundError("Testimonial not found")
    testimonial.is_approved = True
    db.commit()
    db.refresh(testimonial)
    return testimonial


def delete_testimonial(testimonial_id: int, db: Session) -> None:
    testimonial = db.query(Testimonial).filter(Testimonial.id == testimonial_id).first()
    if not testimonial:
        raise NotFoundError("Testimonial not found")
    db.delete(testimonial)
    db.commit()
