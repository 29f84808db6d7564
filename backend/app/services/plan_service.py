"""Plan service - subscription plan catalog"""
import logging
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError
from app.core.metrics import active_plans_gauge
from app.models.base import isoformat
from app.models.plan import Plan

logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {
        "name": "basic",
        "display_name": "Basic",
        "price_monthly": 199,
        "price_yearly": 1999,
        "features": ["HD available", "Watch on 1 device", "Unlimited movies & TV shows"],
        "quality": "Good",
        "resolution": "720p",
        "devices": "1",
    },
    {
        "name": "standard",
        "display_name": "Standard",
        "price_monthly": 499,
        "price_yearly": 4999,
        "features": ["Full HD available", "Watch on 2 devices", "Unlimited movies & TV shows", "No ads"],
        "quality": "Better",
        "resolution": "1080p",
        "devices": "2",
    },
    {
        "name": "premium",
        "display_name": "Premium",
        "price_monthly": 649,
        "price_yearly": 6499,
        "features": [
            "Ultra HD available", "Watch on 4 devices", "Unlimited movies & TV shows", "No ads", "Spatial audio"
        ],
        "quality": "Best",
        "resolution": "4K+HDR",
        "devices": "4",
    },
]

# API field name -> column
PLAN_FIELDS = {
    "name": "name",
    "displayName": "display_name",
    "features": "features",
    "quality": "quality",
    "resolution": "resolution",
    "devices": "devices",
    "isActive": "is_active",
}


def serialize_plan(plan: Plan) -> Dict[str, Any]:
    return {
        "id": plan.id,
        "name": plan.name,
        "displayName": plan.display_name,
        "price": {"monthly": plan.price_monthly, "yearly": plan.price_yearly},
        "features": plan.features or [],
        "quality": plan.quality,
        "resolution": plan.resolution,
        "devices": plan.devices,
        "isActive": plan.is_active,
        "createdAt": isoformat(plan.created_at),
        "updatedAt": isoformat(plan.updated_at),
    }


def _refresh_gauge(db: Session):
    active_plans_gauge.set(db.query(Plan).filter(Plan.is_active.is_(True)).count())


def seed_plans(db: Session) -> int:
    """Insert the default tiers if the catalog is empty; returns the number inserted"""
    if db.query(Plan).count() > 0:
        return 0
    for data in DEFAULT_PLANS:
        db.add(Plan(**data))
    db.commit()
    _refresh_gauge(db)
    logger.info(f"Seeded {len(DEFAULT_PLANS)} default plans")
    return len(DEFAULT_PLANS)


def list_active_plans(db: Session) -> List[Plan]:
    """Active plans, cheapest first"""
    return db.query(Plan).filter(Plan.is_active.is_(True)).order_by(Plan.price_monthly.asc()).all()


def get_plan_by_name(name: str, db: Session) -> Plan:
    plan = db.query(Plan).filter(Plan.name == name, Plan.is_active.is_(True)).first()
    if not plan:
        raise NotFoundError("Plan not found")
    return plan


def _apply(plan: Plan, data: Dict[str, Any]):
    for field, column in PLAN_FIELDS.items():
        if field in data and data[field] is not None:
            setattr(plan, column, data[field])
    price = data.get("price") or {}
    if price.get("monthly") is not None:
        plan.price_monthly = price["monthly"]
    if price.get("yearly") is not None:
        plan.price_yearly = price["yearly"]


def create_plan(data: Dict[str, Any], db: Session) -> Plan:
    """Raises ConflictError if a plan with the same name exists"""
    plan = Plan()
    _apply(plan, data)
    db.add(plan)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A plan with this name already exists")
    db.refresh(plan)
    _refresh_gauge(db)
    logger.info(f"Created plan {plan.name}")
    return plan


def update_plan(plan_id: int, data: Dict[str, Any], db: Session) -> Plan:
    plan = db.query(Plan).filter(Plan.id == plan_id).first()
    if not plan:
        raise NotFoundError("Plan not found")
    _apply(plan, data)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A plan with this name already exists")
    db.refresh(plan)
    _refresh_gauge(db)
    return plan


def deactivate_plan(plan_id: int, db: Session) -> Plan:
    """Soft delete: the plan stays in the table with is_active=False"""
    plan = db.query(Plan).filter(Plan.id == plan_id).first()
    if not plan:
        raise NotFoundError("Plan not found")
    plan.is_active = False
    db.commit()
    db.refresh(plan)
    _refresh_gauge(db)
    logger.info(f"Deactivated plan {plan.name}")
    return plan
