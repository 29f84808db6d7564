"""Pydantic schemas for viewer profiles"""
from typing import Literal, Optional

from pydantic import Field, StrictBool, StrictInt, StrictStr

from app.schemas.base import CamelModel, ContentId

ProfileType = Literal["adult", "kids"]
MaturityRating = Literal["all", "7+", "13+", "16+", "18+"]


class ProfilePreferences(CamelModel):
    """Known preference keys; anything else in the object is dropped"""
    language: Optional[StrictStr] = None
    maturity_rating: Optional[MaturityRating] = None
    autoplay: Optional[StrictBool] = None
    subtitles: Optional[StrictBool] = None
    subtitle_language: Optional[StrictStr] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


class CreateProfileRequest(CamelModel):
    name: StrictStr
    avatar: Optional[StrictStr] = None
    type: ProfileType = "adult"
    preferences: Optional[ProfilePreferences] = None
    pin: Optional[StrictStr] = None


class UpdateProfileRequest(CamelModel):
    name: Optional[StrictStr] = None
    avatar: Optional[StrictStr] = None
    type: Optional[ProfileType] = None
    preferences: Optional[ProfilePreferences] = None
    pin: Optional[StrictStr] = None

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.preferences is not None:
            payload["preferences"] = self.preferences.to_payload()
        return payload


class SwitchProfileRequest(CamelModel):
    pin: Optional[StrictStr] = None


class WatchHistoryEntryRequest(CamelModel):
    content_id: ContentId
    content_type: Literal["movie", "tv", "trailer"]
    title: StrictStr
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    progress: float = Field(0, ge=0)
    duration: float = Field(0, ge=0)
    season: Optional[StrictInt] = None
    episode: Optional[StrictInt] = None


class MyListItemRequest(CamelModel):
    content_id: ContentId
    content_type: Literal["movie", "tv"]
    title: StrictStr
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    overview: Optional[str] = None
    vote_average: Optional[float] = None
    release_date: Optional[str] = None
