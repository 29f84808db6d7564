"""Viewer profile models"""
from sqlalchemy import (
    Column, Integer, Float, String, Text, DateTime, Boolean, ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from app.models.base import Base, utcnow


# Default avatar options per profile type
DEFAULT_AVATARS = {
    "adult": [
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Felix",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Aneka",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Zack",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Molly",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Bandit",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Chloe",
    ],
    "kids": [
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Baby1",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Baby2",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Baby3",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Baby4",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Baby5",
        "https://api.dicebear.com/7.x/avataaars/svg?seed=Baby6",
    ],
}

# Profile ceiling per subscription plan
PLAN_PROFILE_LIMITS = {
    "basic": 2,
    "standard": 4,
    "premium": 6,
    "mobile": 1,
}
DEFAULT_PROFILE_LIMIT = 4

PROFILE_TYPES = ("adult", "kids")
MATURITY_RATINGS = ("all", "7+", "13+", "16+", "18+")

MAX_WATCH_HISTORY = 100
CONTINUE_WATCHING_LIMIT = 20
COMPLETION_THRESHOLD = 0.9


def get_default_avatars(profile_type: str = "adult") -> list:
    return list(DEFAULT_AVATARS.get(profile_type) or DEFAULT_AVATARS["adult"])


def get_max_profiles(plan_name) -> int:
    if not plan_name:
        return DEFAULT_PROFILE_LIMIT
    return PLAN_PROFILE_LIMITS.get(str(plan_name).lower(), DEFAULT_PROFILE_LIMIT)


def default_preferences(profile_type: str = "adult") -> dict:
    return {
        "language": "en",
        "maturityRating": "7+" if profile_type == "kids" else "18+",
        "autoplay": True,
        "subtitles": True,
        "subtitleLanguage": "en",
    }


class Profile(Base):
    """A viewer slot owned by one account"""
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    avatar = Column(String(1024))
    type = Column(String(10), default="adult", nullable=False)  # adult, kids
    is_active = Column(Boolean, default=False, nullable=False)
    preferences = Column(JSON, default=dict)
    pin = Column(String(64), nullable=True)  # Encoded PIN, see app.utils.pin
    total_watch_time = Column(Integer, default=0, nullable=False)  # Minutes
    last_activity_at = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="profiles")
    watch_history = relationship(
        "ProfileWatchHistoryEntry",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="ProfileWatchHistoryEntry.watched_at.desc()"
    )
    my_list = relationship(
        "ProfileListItem",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="ProfileListItem.added_at.desc()"
    )

    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uq_profiles_user_name'),
        Index('ix_profiles_user_active', 'user_id', 'is_active'),
    )

    @property
    def watch_history_count(self) -> int:
        return len(self.watch_history or [])

    @property
    def my_list_count(self) -> int:
        return len(self.my_list or [])

    @property
    def completion_rate(self) -> int:
        if not self.watch_history:
            return 0
        completed = sum(1 for item in self.watch_history if item.completed)
        return round(completed / len(self.watch_history) * 100)

    @property
    def has_pin(self) -> bool:
        return bool(self.pin)


class ProfileWatchHistoryEntry(Base):
    """One (content_id, content_type) pair watched by a profile"""
    __tablename__ = "profile_watch_history"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    content_id = Column(String(64), nullable=False)
    content_type = Column(String(10), nullable=False)  # movie, tv, trailer
    title = Column(String(500), nullable=False)
    poster_path = Column(String(1024))
    backdrop_path = Column(String(1024))
    progress = Column(Float, default=0, nullable=False)  # Seconds watched
    duration = Column(Float, default=0, nullable=False)  # Seconds
    completed = Column(Boolean, default=False, nullable=False)
    watched_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    season = Column(Integer)
    episode = Column(Integer)

    profile = relationship("Profile", back_populates="watch_history")

    __table_args__ = (
        UniqueConstraint('profile_id', 'content_id', 'content_type', name='uq_profile_history_content'),
        Index('ix_profile_history_watched_at', 'profile_id', 'watched_at'),
    )


class ProfileListItem(Base):
    """An entry in a profile's "my list" """
    __tablename__ = "profile_list_items"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    content_id = Column(String(64), nullable=False)
    content_type = Column(String(10), nullable=False)  # movie, tv
    title = Column(String(500), nullable=False)
    poster_path = Column(String(1024))
    backdrop_path = Column(String(1024))
    overview = Column(Text)
    vote_average = Column(Float)
    release_date = Column(String(20))
    added_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    profile = relationship("Profile", back_populates="my_list")

    __table_args__ = (
        UniqueConstraint('profile_id', 'content_id', name='uq_profile_list_content'),
    )
