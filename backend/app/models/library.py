"""Account-level "my list" and watch history"""
from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, JSON, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.models.base import Base, utcnow

MAX_ACCOUNT_HISTORY = 50


class AccountListItem(Base):
    """Titles saved to the account-wide list"""
    __tablename__ = "account_list_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(String(64), nullable=False)
    title = Column(String(500), nullable=False)
    poster_path = Column(String(1024))
    media_type = Column(String(10), default="movie", nullable=False)  # movie, tv
    added_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="list_items")

    __table_args__ = (
        UniqueConstraint('user_id', 'movie_id', name='uq_account_list_movie'),
    )


class WatchHistoryItem(Base):
    """Account-wide watch history, newest first, capped at MAX_ACCOUNT_HISTORY"""
    __tablename__ = "watch_history_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(String(64), nullable=False)
    title = Column(String(500), nullable=False)
    poster_path = Column(String(1024))
    genres = Column(JSON, default=list)
    duration = Column(Integer, default=120, nullable=False)  # Minutes
    vote_average = Column(Float)
    watched_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="watch_history")

    __table_args__ = (
        Index('ix_watch_history_user_watched', 'user_id', 'watched_at'),
    )
