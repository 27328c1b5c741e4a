"""Public plan catalog endpoints used by the pricing and order pages."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from storefront.catalog import PlanCategory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plans", tags=["Plans"])


@router.get("")
async def list_plans(request: Request, category: Optional[str] = Query(None)):
    """Active plans, optionally limited to one category (rdp or vps)."""
    store = request.app.state.plan_store
    if category:
        try:
            plan_category = PlanCategory.from_slug(category)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        plans = await store.get_plans_by_category(plan_category)
    else:
        plans = await store.get_all_plans()
    return [plan.to_public_dict() for plan in plans]


@router.get("/{plan_id}")
async def get_plan(plan_id: str, request: Request):
    plan = await request.app.state.plan_store.get_plan_by_id(plan_id)
    # Inactive plans cannot be ordered
    if plan is None or not plan.is_active:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan.to_public_dict()
