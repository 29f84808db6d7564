"""Pydantic schemas for account endpoints"""
from datetime import date, datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class AccountDetails(CamelModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[Dict[str, Any]] = None


class UpdateMeRequest(CamelModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    phone_number: Optional[str] = None
    profile: Optional[AccountDetails] = None


class SubscriptionUpdateRequest(CamelModel):
    plan: Optional[Literal["basic", "standard", "premium", "mobile", "trial", "none"]] = None
    billing_cycle: Optional[Literal["monthly", "yearly"]] = None
    status: Optional[Literal["active", "inactive", "cancelled", "expired", "trial", "none"]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class RoleUpdateRequest(CamelModel):
    role: str
