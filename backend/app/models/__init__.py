"""SQLAlchemy models package - imports all models so they register with Base.metadata"""
from app.models.base import Base
from app.models.user import User
from app.models.profile import Profile, ProfileWatchHistoryEntry, ProfileListItem
from app.models.plan import Plan
from app.models.testimonial import Testimonial
from app.models.library import AccountListItem, WatchHistoryItem

# Export all for convenience
__all__ = [
    "Base", "User", "Profile", "ProfileWatchHistoryEntry", "ProfileListItem",
    "Plan", "Testimonial", "AccountListItem", "WatchHistoryItem"
]
