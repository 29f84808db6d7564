"""Plan catalog API routes"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.plans import PlanCreateRequest, PlanUpdateRequest
from app.services.plan_service import (
    list_active_plans, get_plan_by_name, create_plan, update_plan, deactivate_plan, serialize_plan
)

router = APIRouter(prefix="/api/plans", tags=["plans"])
logger = logging.getLogger(__name__)


@router.get("")
def get_plans(db: Session = Depends(get_db)):
    """Active plans, cheapest first (public)"""
    plans = list_active_plans(db)
    return {"success": True, "count": len(plans), "data": [serialize_plan(p) for p in plans]}


@router.get("/{name}")
def get_plan(name: str, db: Session = Depends(get_db)):
    return {"success": True, "data": serialize_plan(get_plan_by_name(name, db))}


@router.post("", status_code=201)
def create_plan_endpoint(
    request_data: PlanCreateRequest,
    admin_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    plan = create_plan(request_data.to_payload(), db)
    return {"success": True, "message": "Plan created successfully", "data": serialize_plan(plan)}


@router.put("/{plan_id}")
def update_plan_endpoint(
    plan_id: int,
    request_data: PlanUpdateRequest,
    admin_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    plan = update_plan(plan_id, request_data.to_payload(), db)
    return {"success": True, "message": "Plan updated successfully", "data": serialize_plan(plan)}


@router.delete("/{plan_id}")
def delete_plan_endpoint(plan_id: int, admin_user: User = Depends(require_admin), db: Session = Depends(get_db)):
    deactivate_plan(plan_id, db)
    return {"success": True, "message": "Plan deleted successfully"}
