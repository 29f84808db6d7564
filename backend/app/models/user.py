"""User (account) model"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Boolean, JSON, Index
from sqlalchemy.orm import relationship
from app.models.base import Base, utcnow


class User(Base):
    """Accounts linked to an identity-provider subject"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(128), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)  # Stored lowercased
    display_name = Column(String(255))
    photo_url = Column(String(1024))
    phone_number = Column(String(50))
    role = Column(String(20), default="user", nullable=False)  # user, admin, moderator
    is_active = Column(Boolean, default=True, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)

    # Personal details
    first_name = Column(String(100))
    last_name = Column(String(100))
    bio = Column(Text)
    date_of_birth = Column(Date)
    address = Column(JSON, default=dict)  # street, city, state, zipCode, country

    # Subscription
    subscription_plan = Column(String(20), default="none", nullable=False)  # basic, standard, premium, trial, none
    subscription_status = Column(String(20), default="none", nullable=False)  # active, inactive, cancelled, expired, trial, none
    billing_cycle = Column(String(20), default="monthly", nullable=False)  # monthly, yearly
    subscription_start = Column(DateTime(timezone=True))
    subscription_end = Column(DateTime(timezone=True))
    trial_start = Column(DateTime(timezone=True))
    trial_end = Column(DateTime(timezone=True))

    # Profiles
    max_profiles = Column(Integer, nullable=True)  # Overrides the plan-derived ceiling when set
    active_profile_id = Column(Integer, nullable=True)  # Kept in step with Profile.is_active by profile_service

    last_login_at = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    profiles = relationship(
        "Profile",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Profile.created_at"
    )
    list_items = relationship("AccountListItem", back_populates="user", cascade="all, delete-orphan")
    watch_history = relationship("WatchHistoryItem", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_users_role', 'role'),
        Index('ix_users_created_at', 'created_at'),
    )

    @property
    def full_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.display_name or self.email
