"""Testimonial API routes"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import get_current_user, require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.testimonials import CreateTestimonialRequest
from app.services.testimonial_service import (
    list_approved, list_all, create_testimonial, approve_testimonial, delete_testimonial,
    serialize_testimonial
)

router = APIRouter(prefix="/api/testimonials", tags=["testimonials"])
logger = logging.getLogger(__name__)


@router.get("")
def get_testimonials(db: Session = Depends(get_db)):
    """Newest approved testimonials (public)"""
    testimonials = list_approved(db)
    return {"success": True, "count": len(testimonials), "data": [serialize_testimonial(t) for t in testimonials]}


@router.post("", status_code=201)
def create_testimonial_endpoint(
    request_data: CreateTestimonialRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    testimonial = create_testimonial(
        request_data.name, request_data.rating, request_data.text, role=request_data.role, db=db
    )
    return {
        "success": True,
        "message": "Thank you! Your review has been submitted for approval.",
        "data": {
            "id": testimonial.id,
            "name": testimonial.name,
            "createdAt": serialize_testimonial(testimonial)["createdAt"]
        }
    }


@router.get("/admin/all")
def get_all_testimonials(admin_user: User = Depends(require_admin), db: Session = Depends(get_db)):
    testimonials = list_all(db)
    return {"success": True, "count": len(testimonials), "data": [serialize_testimonial(t) for t in testimonials]}


@router.put("/admin/approve/{testimonial_id}")
def approve_testimonial_endpoint(
    testimonial_id: int,
    admin_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    testimonial = approve_testimonial(testimonial_id, db)
    return {"success": True, "message": "Testimonial approved successfully", "data": serialize_testimonial(testimonial)}


@router.delete("/admin/{testimonial_id}")
def delete_testimonial_endpoint(
    testimonial_id: int,
    admin_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    delete_testimonial(testimonial_id, db)
    return {"success": True, "message": "Testimonial deleted successfully"}
