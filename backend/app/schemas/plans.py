"""Pydantic schemas for the plan catalog"""
from typing import List, Literal, Optional

from pydantic import Field

from app.schemas.base import CamelModel

PlanName = Literal["basic", "standard", "premium"]


class PlanPrice(CamelModel):
    monthly: float = Field(..., ge=0)
    yearly: float = Field(..., ge=0)


class PlanPriceUpdate(CamelModel):
    monthly: Optional[float] = Field(None, ge=0)
    yearly: Optional[float] = Field(None, ge=0)


class PlanCreateRequest(CamelModel):
    name: PlanName
    display_name: str
    price: PlanPrice
    features: List[str] = []
    quality: str
    resolution: str
    devices: str
    is_active: bool = True

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class PlanUpdateRequest(CamelModel):
    name: Optional[PlanName] = None
    display_name: Optional[str] = None
    price: Optional[PlanPriceUpdate] = None
    features: Optional[List[str]] = None
    quality: Optional[str] = None
    resolution: Optional[str] = None
    devices: Optional[str] = None
    is_active: Optional[bool] = None
