"""Testimonial model"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Index
from app.models.base import Base, utcnow


class Testimonial(Base):
    """Public reviews shown on the landing page"""
    __tablename__ = "testimonials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    role = Column(String(100), default="MovieFlix User", nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    text = Column(Text, nullable=False)  # Up to 500 characters
    avatar = Column(String(1024))
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('ix_testimonials_approved_created', 'is_approved', 'created_at'),
    )
