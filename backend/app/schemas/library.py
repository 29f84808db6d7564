"""Pydantic schemas for the account-level list and watch history"""
from typing import List, Literal, Optional

from pydantic import StrictStr

from app.schemas.base import CamelModel, ContentId


class MyListAddRequest(CamelModel):
    movie_id: ContentId
    title: StrictStr
    poster_path: Optional[str] = None
    media_type: Optional[Literal["movie", "tv"]] = None


class WatchHistoryAddRequest(CamelModel):
    movie_id: ContentId
    title: StrictStr
    poster_path: Optional[str] = None
    genres: Optional[List[str]] = None
    duration: Optional[int] = None
    vote_average: Optional[float] = None
