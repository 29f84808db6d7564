"""Subscription plan model"""
from sqlalchemy import Column, Integer, Float, String, DateTime, Boolean, JSON
from app.models.base import Base, utcnow


class Plan(Base):
    """Subscription tiers (basic, standard, premium)"""
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(20), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    price_monthly = Column(Float, nullable=False)
    price_yearly = Column(Float, nullable=False)
    features = Column(JSON, default=list)
    quality = Column(String(50), nullable=False)
    resolution = Column(String(50), nullable=False)
    devices = Column(String(20), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
