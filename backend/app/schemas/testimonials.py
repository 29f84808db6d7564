"""Pydantic schemas for testimonials"""
from typing import Optional

from app.schemas.base import CamelModel


class CreateTestimonialRequest(CamelModel):
    name: str
    role: Optional[str] = None
    rating: int
    text: str
